"""Tests for the create_user command-line script."""

import io
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest.mock import patch

from brote.models import AuditLogEntry, User
from brote.scripts import create_user
from tests.support import make_session_factory


class TestCreateUserScript(unittest.TestCase):
    def setUp(self) -> None:
        self.session_factory = make_session_factory()
        patcher = patch.object(create_user, "SessionLocal", self.session_factory)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_creates_admin(self) -> None:
        out = io.StringIO()
        with redirect_stdout(out):
            code = create_user.main(["root", "root@brote.org", "very-secret", "admin"])
        self.assertEqual(code, 0)
        self.assertIn("role 'admin'", out.getvalue())
        db = self.session_factory()
        try:
            user = db.query(User).filter(User.username == "root").one()
            self.assertEqual(user.role, "admin")
            self.assertEqual(db.query(AuditLogEntry).filter(AuditLogEntry.type == "user_create").count(), 1)
        finally:
            db.close()

    def test_duplicate_and_oversized_password_fail(self) -> None:
        with redirect_stdout(io.StringIO()):
            create_user.main(["root", "root@brote.org", "very-secret"])
        err = io.StringIO()
        with redirect_stderr(err):
            self.assertEqual(create_user.main(["root", "other@brote.org", "very-secret"]), 1)
            self.assertEqual(create_user.main(["nuevo", "n@brote.org", "x" * 129]), 1)
        self.assertIn("already registered", err.getvalue())
        self.assertIn("Invalid password length", err.getvalue())


if __name__ == "__main__":
    unittest.main()
