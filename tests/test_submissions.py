"""Tests for the submission review workflow and best-effort publication."""

import json
import unittest
from unittest.mock import MagicMock

from sqlalchemy import select

from brote.core.errors import BadRequestError, ConflictError, NotFoundError
from brote.models import (
    ArtistLink,
    AuditLogEntry,
    Band,
    Event,
    EventLink,
    SocialActivityLog,
    Submission,
    Venue,
    VenueLink,
    events_bands,
)
from brote.services.audit import AuditLog
from brote.services.publisher import Publisher, PublisherError
from brote.services.submissions import (
    PublicationRequest,
    SubmissionWorkflow,
    generate_approval_token,
    publish_submission,
    slugify,
    verify_approval_token,
)
from tests.support import add_user, make_session_factory


class WorkflowTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.session_factory = make_session_factory()
        self.db = self.session_factory()
        self.audit = AuditLog(self.session_factory)
        self.workflow = SubmissionWorkflow(self.db, self.audit)
        self.user = add_user(self.db, "submitter")
        self.admin = add_user(self.db, "moderator", role="admin")

    def tearDown(self) -> None:
        self.db.close()

    def audit_entries(self, log_type: str) -> list[AuditLogEntry]:
        return (
            self.db.query(AuditLogEntry)
            .filter(AuditLogEntry.type == log_type)
            .order_by(AuditLogEntry.id)
            .all()
        )


class TestCreate(WorkflowTestCase):
    def test_new_submission_is_pending_and_audited(self) -> None:
        submission = self.workflow.create(self.user.id, "band", {"name": "X"})
        self.assertEqual(submission.status, "pending")
        self.assertEqual(submission.user_id, self.user.id)
        self.assertIsNone(submission.reviewed_by)

        entries = self.audit_entries("submission_create")
        self.assertEqual(len(entries), 1)
        self.assertEqual(entries[0].user_id, self.user.id)
        self.assertIsNone(entries[0].old_value)
        self.assertEqual(json.loads(entries[0].new_value)["data"], {"name": "X"})

    def test_admin_submissions_also_start_pending(self) -> None:
        submission = self.workflow.create(self.admin.id, "news", {"title": "Hola"})
        self.assertEqual(submission.status, "pending")

    def test_unknown_type_is_rejected(self) -> None:
        with self.assertRaises(BadRequestError):
            self.workflow.create(self.user.id, "podcast", {"title": "x"})

    def test_payload_is_not_validated_at_creation(self) -> None:
        submission = self.workflow.create(self.user.id, "band", {"unexpected": True})
        self.assertEqual(submission.data, {"unexpected": True})

    def test_list_filters_by_status(self) -> None:
        first = self.workflow.create(self.user.id, "band", {"name": "A"})
        self.workflow.create(self.user.id, "band", {"name": "B"})
        self.workflow.transition(first.id, "rejected", "dup", self.admin.id)

        pending = self.workflow.list_submissions(status="pending")
        self.assertEqual([s.data["name"] for s in pending], ["B"])
        self.assertEqual(len(self.workflow.list_submissions()), 2)

    def test_get_unknown_is_not_found(self) -> None:
        with self.assertRaises(NotFoundError):
            self.workflow.get(999)


class TestTransition(WorkflowTestCase):
    def test_approve_band_creates_entity_link_and_audit(self) -> None:
        submission = self.workflow.create(self.user.id, "band", {"name": "X", "bio": "Rock"})
        result = self.workflow.transition(submission.id, "approved", None, self.admin.id)

        self.assertEqual(result.submission.status, "approved")
        self.assertEqual(result.submission.reviewed_by, self.admin.id)
        self.assertEqual(result.entity_type, "band")
        band = self.db.get(Band, result.entity_id)
        self.assertEqual(band.name, "X")
        self.assertEqual(band.slug, "x")

        link = self.db.query(ArtistLink).filter(ArtistLink.artist_id == band.id).one()
        self.assertEqual(link.user_id, self.user.id)
        self.assertEqual(link.rol, "creador")

        self.assertIsNotNone(result.publication)
        self.assertEqual(result.publication.entity_type, "band")
        self.assertEqual(result.publication.image_path, "bands/x.jpg")

        entries = self.audit_entries("submission_status")
        self.assertEqual(len(entries), 1)
        self.assertEqual(entries[0].user_id, self.admin.id)
        self.assertEqual(json.loads(entries[0].old_value)["status"], "pending")
        self.assertEqual(json.loads(entries[0].new_value)["status"], "approved")

    def test_second_transition_is_a_conflict(self) -> None:
        submission = self.workflow.create(self.user.id, "band", {"name": "X"})
        self.workflow.transition(submission.id, "approved", None, self.admin.id)
        with self.assertRaises(ConflictError):
            self.workflow.transition(submission.id, "rejected", "late", self.admin.id)
        self.assertEqual(self.db.query(Band).count(), 1)
        self.assertEqual(len(self.audit_entries("submission_status")), 1)

    def test_rejected_cannot_be_approved(self) -> None:
        submission = self.workflow.create(self.user.id, "band", {"name": "X"})
        result = self.workflow.transition(submission.id, "rejected", "spam", self.admin.id)
        self.assertEqual(result.submission.comment, "spam")
        self.assertIsNone(result.entity_id)
        self.assertIsNone(result.publication)
        with self.assertRaises(ConflictError):
            self.workflow.transition(submission.id, "approved", None, self.admin.id)
        self.assertEqual(self.db.query(Band).count(), 0)

    def test_non_terminal_status_is_bad_request(self) -> None:
        submission = self.workflow.create(self.user.id, "band", {"name": "X"})
        with self.assertRaises(BadRequestError):
            self.workflow.transition(submission.id, "pending", None, self.admin.id)
        with self.assertRaises(BadRequestError):
            self.workflow.transition(submission.id, "archived", None, self.admin.id)

    def test_invalid_payload_leaves_submission_pending(self) -> None:
        submission = self.workflow.create(self.user.id, "band", {"bio": "no name"})
        with self.assertRaises(BadRequestError):
            self.workflow.transition(submission.id, "approved", None, self.admin.id)
        self.db.expire_all()
        self.assertEqual(self.db.get(Submission, submission.id).status, "pending")
        self.assertEqual(self.db.query(Band).count(), 0)

    def test_invalid_payload_can_still_be_rejected(self) -> None:
        submission = self.workflow.create(self.user.id, "band", {"bio": "no name"})
        result = self.workflow.transition(submission.id, "rejected", "incomplete", self.admin.id)
        self.assertEqual(result.submission.status, "rejected")

    def test_null_optional_fields_take_defaults(self) -> None:
        band = self.workflow.create(
            self.user.id, "band", {"name": "X", "bio": None, "social": None, "slug": None}
        )
        event = self.workflow.create(
            self.user.id, "event", {"title": "T", "band_ids": None, "tags": None, "id_venue": None}
        )
        band_result = self.workflow.transition(band.id, "approved", None, self.admin.id)
        event_result = self.workflow.transition(event.id, "approved", None, self.admin.id)

        created = self.db.get(Band, band_result.entity_id)
        self.assertEqual(created.bio, "")
        self.assertEqual(created.social, {})
        self.assertEqual(created.slug, "x")
        self.assertEqual(self.db.get(Event, event_result.entity_id).tags, "")

    def test_null_required_field_is_still_rejected(self) -> None:
        submission = self.workflow.create(self.user.id, "news", {"title": None})
        with self.assertRaises(BadRequestError):
            self.workflow.transition(submission.id, "approved", None, self.admin.id)

    def test_event_with_bands_and_no_venue(self) -> None:
        submission = self.workflow.create(
            self.user.id,
            "event",
            {"title": "Fiesta de Otoño", "id_venue": "", "band_ids": [3, 4, 3]},
        )
        result = self.workflow.transition(submission.id, "approved", None, self.admin.id)

        event = self.db.get(Event, result.entity_id)
        self.assertIsNone(event.id_venue)
        self.assertEqual(event.slug, "fiesta-de-otono")
        rows = self.db.execute(
            select(events_bands.c.id_band).where(events_bands.c.id_event == event.id)
        ).scalars().all()
        self.assertEqual(sorted(rows), [3, 4])
        self.assertEqual(
            self.db.query(EventLink).filter(EventLink.event_id == event.id).count(), 1
        )
        self.assertEqual(result.publication.image_path, "events/fiesta-de-otono.jpg")

    def test_eventvenue_creates_both_and_links_them(self) -> None:
        submission = self.workflow.create(
            self.user.id,
            "eventvenue",
            {
                "venue": {"name": "Sala Uno", "city": "Neuquén"},
                "event": {"title": "Show", "content": "En vivo"},
            },
        )
        result = self.workflow.transition(submission.id, "approved", None, self.admin.id)

        self.assertEqual(result.entity_type, "event")
        event = self.db.get(Event, result.entity_id)
        venue = self.db.get(Venue, event.id_venue)
        self.assertEqual(venue.name, "Sala Uno")
        self.assertEqual(self.db.query(VenueLink).filter(VenueLink.venue_id == venue.id).count(), 1)
        self.assertEqual(result.publication.entity_type, "eventvenue")
        self.assertEqual(result.publication.entity_data["event"]["title"], "Show")

    def test_venue_is_not_published(self) -> None:
        submission = self.workflow.create(self.user.id, "venue", {"name": "Sala Dos"})
        result = self.workflow.transition(submission.id, "approved", None, self.admin.id)
        self.assertEqual(result.entity_type, "venue")
        self.assertIsNone(result.publication)

    def test_artist_link_accepts_nested_data_and_upserts(self) -> None:
        self.db.add(ArtistLink(user_id=self.user.id, artist_id=9, rol="fan", status="pending"))
        self.db.commit()
        submission = self.workflow.create(
            self.user.id, "artist_link", {"data": {"artist_id": 9, "rol": "bajista"}}
        )
        self.workflow.transition(submission.id, "approved", None, self.admin.id)

        links = self.db.query(ArtistLink).filter(ArtistLink.artist_id == 9).all()
        self.assertEqual(len(links), 1)
        self.assertEqual(links[0].rol, "bajista")
        self.assertEqual(links[0].status, "approved")

    def test_unknown_submission_is_not_found(self) -> None:
        with self.assertRaises(NotFoundError):
            self.workflow.transition(404, "approved", None, self.admin.id)


class TestHelpers(unittest.TestCase):
    def test_slugify(self) -> None:
        self.assertEqual(slugify("Los Álamos!"), "los-alamos")
        self.assertEqual(slugify("  --Rock & Roll--  "), "rock-roll")

    def test_approval_token_is_bound_to_id_and_secret(self) -> None:
        token = generate_approval_token(12, "moderation-secret")
        self.assertTrue(verify_approval_token(12, token, "moderation-secret"))
        self.assertFalse(verify_approval_token(13, token, "moderation-secret"))
        self.assertFalse(verify_approval_token(12, token, "other-secret"))
        self.assertFalse(verify_approval_token(12, "", "moderation-secret"))


class TestPublishSubmission(unittest.TestCase):
    """Publication never raises and records each attempt."""

    def setUp(self) -> None:
        self.session_factory = make_session_factory()
        self.request = PublicationRequest(
            submission_id=5,
            entity_type="band",
            entity_data={"name": "X", "bio": "Rock"},
            image_path="bands/x.jpg",
        )

    def activity(self) -> list[SocialActivityLog]:
        db = self.session_factory()
        try:
            return db.query(SocialActivityLog).all()
        finally:
            db.close()

    def test_success_is_recorded(self) -> None:
        publisher = MagicMock(spec=Publisher)
        publisher.publish.return_value = True
        self.assertTrue(publish_submission(publisher, self.session_factory, self.request))
        publisher.publish.assert_called_once_with("band", {"name": "X", "bio": "Rock"}, "bands/x.jpg")
        rows = self.activity()
        self.assertEqual(len(rows), 1)
        self.assertTrue(rows[0].success)

    def test_failure_is_recorded_not_raised(self) -> None:
        publisher = MagicMock(spec=Publisher)
        publisher.publish.side_effect = PublisherError("Graph API returned 400: bad image", 400)
        self.assertFalse(publish_submission(publisher, self.session_factory, self.request))
        rows = self.activity()
        self.assertEqual(len(rows), 1)
        self.assertFalse(rows[0].success)
        self.assertIn("bad image", rows[0].error_message)

    def test_unexpected_error_is_recorded(self) -> None:
        publisher = MagicMock(spec=Publisher)
        publisher.publish.side_effect = RuntimeError("boom")
        self.assertFalse(publish_submission(publisher, self.session_factory, self.request))
        self.assertIn("RuntimeError", self.activity()[0].error_message)

    def test_unconfigured_publisher_records_nothing(self) -> None:
        publisher = MagicMock(spec=Publisher)
        publisher.publish.return_value = False
        self.assertFalse(publish_submission(publisher, self.session_factory, self.request))
        self.assertEqual(self.activity(), [])


if __name__ == "__main__":
    unittest.main()
