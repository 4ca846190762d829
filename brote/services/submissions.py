"""Moderation workflow for user submissions: pending -> approved | rejected.

Approval converts the stored payload into the matching catalogue entity
(band, event, venue, ...) in the same transaction as the status change.
Publication to social media happens afterwards and is best-effort.
"""

import hashlib
import hmac
import logging
import re
import unicodedata
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from brote.core.errors import BadRequestError, ConflictError, InternalError, NotFoundError
from brote.models import (
    ArtistLink,
    Band,
    Event,
    EventLink,
    News,
    SocialActivityLog,
    Song,
    Submission,
    Venue,
    VenueLink,
    Video,
    events_bands,
    news_bands,
    videos_bands,
)
from brote.models.submission import (
    SUBMISSION_STATUS_APPROVED,
    SUBMISSION_STATUS_PENDING,
    SUBMISSION_STATUS_REJECTED,
)
from brote.schemas.submissions import (
    PAYLOAD_SCHEMAS,
    SUBMISSION_TYPES,
    ArtistLinkPayload,
    BandPayload,
    EventPayload,
    EventVenuePayload,
    NewsPayload,
    SongPayload,
    VenuePayload,
    VideoPayload,
)
from brote.services.audit import AUDIT_SUBMISSION_CREATE, AUDIT_SUBMISSION_STATUS, AuditLog
from brote.services.publisher import Publisher, PublisherError

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = (SUBMISSION_STATUS_APPROVED, SUBMISSION_STATUS_REJECTED)
OWNER_ROLE = "creador"


@dataclass
class PublicationRequest:
    """Approved entity handed to the Publisher after the review has been committed."""

    submission_id: int
    entity_type: str
    entity_data: dict[str, Any]
    image_path: str


@dataclass
class TransitionResult:
    submission: Submission
    entity_type: str | None = None
    entity_id: int | None = None
    publication: PublicationRequest | None = None


@dataclass
class _Materialized:
    entity_type: str
    entity_id: int
    publication: tuple[str, dict[str, Any], str] | None = field(default=None)


def slugify(text: str) -> str:
    """ASCII, lowercase, dash-separated slug ("Los Álamos!" -> "los-alamos")."""
    normalized = unicodedata.normalize("NFKD", text)
    ascii_text = normalized.encode("ascii", "ignore").decode("ascii")
    return re.sub(r"[^a-z0-9]+", "-", ascii_text.lower()).strip("-")


def generate_approval_token(submission_id: int, secret: str) -> str:
    """Hex HMAC-SHA256 of the submission id, used in one-click approval links."""
    return hmac.new(secret.encode("utf-8"), str(submission_id).encode("utf-8"), hashlib.sha256).hexdigest()


def verify_approval_token(submission_id: int, token: str, secret: str) -> bool:
    if not token or not secret:
        return False
    return hmac.compare_digest(generate_approval_token(submission_id, secret), token)


def submission_snapshot(submission: Submission) -> dict[str, Any]:
    return {
        "id": submission.id,
        "user_id": submission.user_id,
        "type": submission.type,
        "status": submission.status,
        "reviewed_by": submission.reviewed_by,
        "comment": submission.comment,
        "data": submission.data,
    }


def _unique(ids: list[int]) -> list[int]:
    return [i for i in dict.fromkeys(ids) if i > 0]


class SubmissionWorkflow:
    """Creates, lists and reviews submissions within one DB session."""

    def __init__(self, db: Session, audit: AuditLog) -> None:
        self.db = db
        self.audit = audit
        self._materializers: dict[str, Callable[[Submission, Any], _Materialized]] = {
            "band": self._create_band,
            "venue": self._create_venue,
            "event": self._create_event,
            "eventvenue": self._create_event_with_venue,
            "news": self._create_news,
            "song": self._create_song,
            "video": self._create_video,
            "artist_link": self._link_artist,
        }

    def create(self, user_id: int, submission_type: str, payload: dict[str, Any]) -> Submission:
        """Store a new pending submission. The payload shape is not checked here."""
        if submission_type not in SUBMISSION_TYPES:
            raise BadRequestError(f"Unknown submission type: {submission_type}")
        if not isinstance(payload, dict):
            raise BadRequestError("Submission data must be a JSON object.")

        now = datetime.now(UTC)
        submission = Submission(
            user_id=user_id,
            type=submission_type,
            data=payload,
            status=SUBMISSION_STATUS_PENDING,
            created_at=now,
            updated_at=now,
        )
        self.db.add(submission)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise InternalError("Could not store the submission.") from e
        self.db.refresh(submission)

        self.audit.record(AUDIT_SUBMISSION_CREATE, None, submission_snapshot(submission), user_id)
        logger.info(
            "Submission created",
            extra={"submission_id": submission.id, "submission_type": submission_type, "user_id": user_id},
        )
        return submission

    def get(self, submission_id: int) -> Submission:
        submission = self.db.query(Submission).filter(Submission.id == submission_id).first()
        if submission is None:
            raise NotFoundError("Submission not found.")
        return submission

    def list_submissions(self, status: str | None = None) -> list[Submission]:
        query = self.db.query(Submission)
        if status:
            query = query.filter(Submission.status == status)
        return query.order_by(Submission.created_at.desc(), Submission.id.desc()).all()

    def transition(
        self,
        submission_id: int,
        new_status: str,
        comment: str | None,
        reviewer_id: int,
    ) -> TransitionResult:
        """
        Move a pending submission to approved or rejected.

        Raises NotFoundError, BadRequestError (bad status or invalid payload on
        approval) and ConflictError when the submission was already reviewed.
        """
        if new_status not in TERMINAL_STATUSES:
            raise BadRequestError(f"Invalid review status: {new_status}")
        submission = self.get(submission_id)
        if submission.status != SUBMISSION_STATUS_PENDING:
            raise ConflictError(f"Submission already {submission.status}.")

        before = submission_snapshot(submission)
        materialized: _Materialized | None = None
        try:
            if new_status == SUBMISSION_STATUS_APPROVED:
                materialized = self._materialize(submission)
            # Guarded on status so two concurrent reviews cannot both win.
            updated = (
                self.db.query(Submission)
                .filter(
                    Submission.id == submission_id,
                    Submission.status == SUBMISSION_STATUS_PENDING,
                )
                .update(
                    {
                        Submission.status: new_status,
                        Submission.reviewed_by: reviewer_id,
                        Submission.comment: comment,
                        Submission.updated_at: datetime.now(UTC),
                    },
                    synchronize_session="fetch",
                )
            )
            if updated == 0:
                self.db.rollback()
                raise ConflictError("Submission was reviewed concurrently.")
            self.db.commit()
        except (BadRequestError, ConflictError):
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                "Submission review failed",
                extra={"submission_id": submission_id, "reason": str(e)[:500]},
            )
            raise InternalError("Could not apply the review.") from e

        self.db.refresh(submission)
        self.audit.record(AUDIT_SUBMISSION_STATUS, before, submission_snapshot(submission), reviewer_id)
        logger.info(
            "Submission reviewed",
            extra={
                "submission_id": submission_id,
                "status": new_status,
                "reviewer_id": reviewer_id,
                "entity_id": materialized.entity_id if materialized else None,
            },
        )

        result = TransitionResult(submission=submission)
        if materialized is not None:
            result.entity_type = materialized.entity_type
            result.entity_id = materialized.entity_id
            if materialized.publication is not None:
                entity_type, entity_data, image_path = materialized.publication
                result.publication = PublicationRequest(
                    submission_id=submission.id,
                    entity_type=entity_type,
                    entity_data=entity_data,
                    image_path=image_path,
                )
        return result

    def _materialize(self, submission: Submission) -> _Materialized:
        schema: type[BaseModel] = PAYLOAD_SCHEMAS[submission.type]
        try:
            payload = schema.model_validate(submission.data)
        except ValidationError as e:
            raise BadRequestError(
                f"Invalid {submission.type} payload: {e.errors()[0].get('msg', 'validation error')}"
            ) from e
        return self._materializers[submission.type](submission, payload)

    def _add(self, entity: Any) -> Any:
        self.db.add(entity)
        self.db.flush()
        return entity

    def _link_owner(self, model: type, submission: Submission, **ids: int) -> None:
        if submission.user_id:
            self.db.add(model(user_id=submission.user_id, rol=OWNER_ROLE, status="approved", **ids))

    def _insert_band_links(self, table: Any, key: str, entity_id: int, band_ids: list[int]) -> None:
        rows = [{key: entity_id, "id_band": band_id} for band_id in _unique(band_ids)]
        if rows:
            self.db.execute(table.insert(), rows)

    def _new_venue(self, submission: Submission, payload: VenuePayload) -> Venue:
        venue = self._add(
            Venue(
                name=payload.name,
                address=payload.address,
                description=payload.description,
                slug=payload.slug or slugify(payload.name),
                latlng=payload.latlng,
                city=payload.city,
            )
        )
        self._link_owner(VenueLink, submission, venue_id=venue.id)
        return venue

    def _new_event(self, submission: Submission, payload: EventPayload, venue_id: int | None) -> Event:
        event = self._add(
            Event(
                id_venue=venue_id,
                title=payload.title,
                tags=payload.tags,
                content=payload.content,
                slug=payload.slug or slugify(payload.title),
                date_start=payload.date_start,
                date_end=payload.date_end,
            )
        )
        self._insert_band_links(events_bands, "id_event", event.id, payload.band_ids)
        self._link_owner(EventLink, submission, event_id=event.id)
        return event

    def _create_band(self, submission: Submission, payload: BandPayload) -> _Materialized:
        slug = payload.slug or slugify(payload.name)
        band = self._add(Band(name=payload.name, bio=payload.bio, slug=slug, social=payload.social))
        self._link_owner(ArtistLink, submission, artist_id=band.id)
        data = payload.model_dump() | {"id": band.id, "slug": slug}
        return _Materialized("band", band.id, ("band", data, f"bands/{slug}.jpg"))

    def _create_venue(self, submission: Submission, payload: VenuePayload) -> _Materialized:
        venue = self._new_venue(submission, payload)
        return _Materialized("venue", venue.id)

    def _create_event(self, submission: Submission, payload: EventPayload) -> _Materialized:
        event = self._new_event(submission, payload, payload.id_venue)
        data = payload.model_dump() | {"id": event.id, "slug": event.slug}
        return _Materialized("event", event.id, ("event", data, f"events/{event.slug}.jpg"))

    def _create_event_with_venue(self, submission: Submission, payload: EventVenuePayload) -> _Materialized:
        venue = self._new_venue(submission, payload.venue)
        event = self._new_event(submission, payload.event, venue.id)
        data = {
            "venue": payload.venue.model_dump() | {"id": venue.id, "slug": venue.slug},
            "event": payload.event.model_dump() | {"id": event.id, "slug": event.slug, "id_venue": venue.id},
        }
        return _Materialized("event", event.id, ("eventvenue", data, f"events/{event.slug}.jpg"))

    def _create_news(self, submission: Submission, payload: NewsPayload) -> _Materialized:
        slug = payload.slug or slugify(payload.title)
        news = self._add(News(slug=slug, title=payload.title, content=payload.content))
        self._insert_band_links(news_bands, "id_news", news.id, payload.band_ids)
        data = payload.model_dump() | {"id": news.id, "slug": slug}
        return _Materialized("news", news.id, ("news", data, f"news/{slug}.jpg"))

    def _create_song(self, submission: Submission, payload: SongPayload) -> _Materialized:
        song = self._add(
            Song(
                title=payload.title,
                slug=payload.slug or slugify(payload.title),
                id_band=payload.band_id,
                id_genre=payload.genre_id,
            )
        )
        return _Materialized("song", song.id)

    def _create_video(self, submission: Submission, payload: VideoPayload) -> _Materialized:
        video = self._add(
            Video(
                title=payload.title,
                slug=payload.slug or slugify(payload.title),
                id_youtube=payload.youtube_id,
            )
        )
        self._insert_band_links(videos_bands, "id_video", video.id, payload.band_ids)
        return _Materialized("video", video.id)

    def _link_artist(self, submission: Submission, payload: ArtistLinkPayload) -> _Materialized:
        if not submission.user_id:
            raise BadRequestError("Artist link submission has no submitting user.")
        link = (
            self.db.query(ArtistLink)
            .filter(ArtistLink.user_id == submission.user_id, ArtistLink.artist_id == payload.artist_id)
            .first()
        )
        if link is None:
            link = self._add(
                ArtistLink(
                    user_id=submission.user_id,
                    artist_id=payload.artist_id,
                    rol=payload.rol,
                    status="approved",
                )
            )
        else:
            link.rol = payload.rol
            link.status = "approved"
        return _Materialized("artist_link", link.id)


def publish_submission(
    publisher: Publisher,
    session_factory: Callable[[], Session],
    request: PublicationRequest,
) -> bool:
    """
    Hand an approved entity to the Publisher and record the attempt.

    Never raises: the approval is already committed and stays the source of truth.
    """
    success = False
    error_message: str | None = None
    try:
        published = publisher.publish(request.entity_type, request.entity_data, request.image_path)
        if not published:
            return False
        success = True
    except PublisherError as e:
        error_message = e.message[:1000]
    except Exception as e:
        error_message = f"{type(e).__name__}: {e}"[:1000]

    if not success:
        logger.error(
            "Social publication failed",
            extra={
                "submission_id": request.submission_id,
                "entity_type": request.entity_type,
                "reason": error_message,
            },
        )

    session = session_factory()
    try:
        session.add(
            SocialActivityLog(
                submission_id=request.submission_id,
                submission_type=request.entity_type,
                success=success,
                error_message=error_message,
            )
        )
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(
            "Recording social activity failed",
            extra={"submission_id": request.submission_id, "reason": str(e)[:500]},
        )
    finally:
        session.close()
    return success
