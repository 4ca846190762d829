"""Tests for outbound Mailgun and Graph API calls (mocked transport)."""

import unittest

import httpx

from brote.services.mailer import Mailer, MailerError, MailerNotConfiguredError, render_recovery_email
from brote.services.publisher import Publisher, PublisherError, build_caption, extract_title_and_description
from tests.support import make_settings


def _transport(status_code: int = 200, json_body: dict | None = None, seen: list | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=json_body or {"id": "1"})

    return httpx.MockTransport(handler)


class TestRecoveryEmail(unittest.TestCase):
    def test_body_contains_token_and_link(self) -> None:
        body = render_recovery_email("abc123", "https://brote.org/")
        self.assertIn("<strong>abc123</strong>", body)
        self.assertIn('href="https://brote.org/password-recovery/abc123/"', body)


class TestMailer(unittest.TestCase):
    def configured(self, transport: httpx.MockTransport) -> Mailer:
        settings = make_settings(MAILGUN_DOMAIN="m.brote.org", MAILGUN_API_KEY="key-123")
        return Mailer(settings, transport=transport)

    def test_not_configured(self) -> None:
        mailer = Mailer(make_settings())
        self.assertFalse(mailer.is_configured())
        with self.assertRaises(MailerNotConfiguredError):
            mailer.send_recovery_email("a@x.org", "tok")

    def test_posts_form_to_domain_messages(self) -> None:
        seen: list[httpx.Request] = []
        self.configured(_transport(seen=seen)).send_recovery_email("a@x.org", "tok")
        self.assertEqual(len(seen), 1)
        request = seen[0]
        self.assertEqual(str(request.url), "https://api.mailgun.net/v3/m.brote.org/messages")
        self.assertTrue(request.headers["Authorization"].startswith("Basic "))
        self.assertIn(b"to=a%40x.org", request.content)

    def test_rejected_key(self) -> None:
        with self.assertRaises(MailerError) as ctx:
            self.configured(_transport(401)).send_recovery_email("a@x.org", "tok")
        self.assertEqual(ctx.exception.status_code, 401)

    def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with self.assertRaises(MailerError) as ctx:
            self.configured(httpx.MockTransport(handler)).send_recovery_email("a@x.org", "tok")
        self.assertIn("timed out", ctx.exception.message)


class TestPublisher(unittest.TestCase):
    def configured(self, transport: httpx.MockTransport) -> Publisher:
        settings = make_settings(FACEBOOK_PAGE_ID="42", FACEBOOK_ACCESS_TOKEN="page-token")
        return Publisher(settings, transport=transport)

    def test_titles_per_type(self) -> None:
        self.assertEqual(extract_title_and_description("band", {"name": "X", "bio": "B"}), ("X", "B"))
        self.assertEqual(
            extract_title_and_description("news", {"title": "T", "content": "C"}), ("T", "C")
        )
        self.assertEqual(
            extract_title_and_description("eventvenue", {"event": {"title": "E", "content": "D"}}),
            ("E", "D"),
        )
        with self.assertRaises(PublisherError):
            extract_title_and_description("song", {"title": "S"})

    def test_caption_skips_empty_description(self) -> None:
        self.assertEqual(build_caption(" X ", ""), "X")
        self.assertEqual(build_caption("X", "Rock"), "X\n\nRock")

    def test_unconfigured_is_a_no_op(self) -> None:
        seen: list[httpx.Request] = []
        publisher = Publisher(make_settings(), transport=_transport(seen=seen))
        self.assertFalse(publisher.publish("band", {"name": "X"}, "bands/x.jpg"))
        self.assertEqual(seen, [])

    def test_publishes_photo_with_caption(self) -> None:
        seen: list[httpx.Request] = []
        ok = self.configured(_transport(seen=seen)).publish(
            "band", {"name": "X", "bio": "Rock"}, "bands/x.jpg"
        )
        self.assertTrue(ok)
        self.assertEqual(str(seen[0].url), "https://graph.facebook.com/v18.0/42/photos")
        self.assertIn(b"bands%2Fx.jpg", seen[0].content)

    def test_graph_error_message_is_surfaced(self) -> None:
        transport = _transport(400, {"error": {"message": "Invalid image"}})
        with self.assertRaises(PublisherError) as ctx:
            self.configured(transport).publish("band", {"name": "X"}, "bands/x.jpg")
        self.assertIn("Invalid image", ctx.exception.message)
        self.assertEqual(ctx.exception.status_code, 400)


if __name__ == "__main__":
    unittest.main()
