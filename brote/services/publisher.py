"""Publish approved content to the Facebook page through the Graph API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from brote.core.config import Settings

logger = logging.getLogger(__name__)

# Caption length kept well under the Graph API limit.
CAPTION_MAX_LENGTH = 2000


class PublisherError(Exception):
    """Raised when a publication cannot be built or the Graph API rejects it."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def extract_title_and_description(entity_type: str, entity_data: dict[str, Any]) -> tuple[str, str]:
    """Pick the headline and body text for a post. Raises PublisherError for unsupported types."""
    if entity_type == "band":
        return entity_data.get("name", ""), entity_data.get("bio", "")
    if entity_type in ("event", "news"):
        return entity_data.get("title", ""), entity_data.get("content", "")
    if entity_type == "eventvenue":
        event = entity_data.get("event") or {}
        return event.get("title", ""), event.get("content", "")
    raise PublisherError(f"Unsupported type for social publication: {entity_type}")


def build_caption(title: str, description: str) -> str:
    caption = title.strip()
    if description and description.strip():
        caption = f"{caption}\n\n{description.strip()}"
    return caption[:CAPTION_MAX_LENGTH]


class Publisher:
    """
    Best-effort social publisher. Callers log failures; nothing here retries.

    When FACEBOOK_PAGE_ID / FACEBOOK_ACCESS_TOKEN are unset, publish() is a no-op.
    """

    def __init__(
        self,
        settings: Settings,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    def is_configured(self) -> bool:
        s = self._settings
        if not s.FACEBOOK_PAGE_ID or not s.FACEBOOK_PAGE_ID.strip():
            return False
        if s.FACEBOOK_ACCESS_TOKEN is None:
            return False
        return bool(s.FACEBOOK_ACCESS_TOKEN.get_secret_value().strip())

    def image_url(self, image_path: str) -> str:
        return f"{self._settings.MEDIA_BASE_URL.rstrip('/')}/{image_path.lstrip('/')}"

    def publish(self, entity_type: str, entity_data: dict[str, Any], image_path: str) -> bool:
        """
        Post the entity with its image to the page feed.

        Returns False when publishing is not configured, True on success.
        Raises PublisherError on any failure.
        """
        title, description = extract_title_and_description(entity_type, entity_data)
        if not self.is_configured():
            logger.info(
                "Social publishing not configured; skipping",
                extra={"entity_type": entity_type},
            )
            return False
        s = self._settings
        url = f"{s.GRAPH_API_BASE_URL.rstrip('/')}/{s.FACEBOOK_PAGE_ID.strip()}/photos"
        data = {
            "url": self.image_url(image_path),
            "caption": build_caption(title, description),
            "access_token": s.FACEBOOK_ACCESS_TOKEN.get_secret_value(),
        }
        try:
            with httpx.Client(timeout=s.OUTBOUND_TIMEOUT_SEC, transport=self._transport) as client:
                resp = client.post(url, data=data)
        except httpx.TimeoutException as e:
            raise PublisherError("Graph API request timed out.") from e
        except httpx.HTTPError as e:
            raise PublisherError(f"Graph API unreachable: {e}") from e
        if resp.status_code >= 400:
            try:
                detail = resp.json().get("error", {}).get("message") or resp.text[:500]
            except ValueError:
                detail = resp.text[:500] if resp.text else "Unknown error"
            raise PublisherError(f"Graph API returned {resp.status_code}: {detail}", resp.status_code)
        logger.info("Published to Facebook", extra={"entity_type": entity_type})
        return True
