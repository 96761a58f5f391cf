"""Tests for the admin scripts and the cron sweep entrypoint."""

import io
import os
import tempfile
import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

from support import add_session, add_user, count_sessions, make_engine, make_settings, open_session

from app import session_cleanup
from app.core.database import build_engine
from app.core.security import verify_password
from app.models import Base, User
from app.scripts import create_user
from app.scripts.seed_test_users import TEST_USERS, seed


class TestSeedTestUsers(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = make_engine()
        self.db = open_session(self.engine)
        self.settings = make_settings()

    def tearDown(self) -> None:
        self.db.close()
        self.engine.dispose()

    def test_seeds_admin_and_member(self) -> None:
        created = seed(self.db, self.settings)
        self.assertEqual(created, ["admin@croquet.nl", "member@croquet.nl"])
        admin = self.db.query(User).filter(User.email == "admin@croquet.nl").one()
        self.assertEqual(admin.role, "admin")
        self.assertTrue(verify_password("admin123", admin.password_hash))

    def test_is_idempotent(self) -> None:
        seed(self.db, self.settings)
        self.assertEqual(seed(self.db, self.settings), [])
        self.assertEqual(self.db.query(User).count(), len(TEST_USERS))


class CliTestCase(unittest.TestCase):
    """File-backed SQLite database, since each CLI run builds (and disposes) its own engine."""

    settings_overrides: dict = {}

    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        url = "sqlite:///" + os.path.join(self.tmpdir.name, "portal.db")
        self.settings = make_settings(DATABASE_URL=url, **self.settings_overrides)
        self.engine = build_engine(self.settings)
        Base.metadata.create_all(self.engine)
        self.db = open_session(self.engine)

    def tearDown(self) -> None:
        self.db.close()
        self.engine.dispose()
        self.tmpdir.cleanup()


class TestCreateUserCli(CliTestCase):
    def run_cli(self, *argv: str) -> tuple[int, str, str]:
        with (
            patch("app.scripts.create_user.get_settings", return_value=self.settings),
            patch("sys.stdout", new_callable=io.StringIO) as out,
            patch("sys.stderr", new_callable=io.StringIO) as err,
        ):
            code = create_user.main(list(argv))
        return code, out.getvalue(), err.getvalue()

    def test_creates_user_and_prints_id(self) -> None:
        code, out, _ = self.run_cli("Secretaris@Croquet.nl", "hoepel123", "rules_committee", "--name", "Secretaris")
        self.assertEqual(code, 0)
        user = self.db.query(User).filter(User.email == "secretaris@croquet.nl").one()
        self.assertEqual(user.role, "rules_committee")
        self.assertEqual(user.name, "Secretaris")
        self.assertIn(f"(id {user.id})", out)
        self.assertTrue(verify_password("hoepel123", user.password_hash))

    def test_role_defaults_to_member(self) -> None:
        code, _, _ = self.run_cli("lid@croquet.nl", "hoepel123")
        self.assertEqual(code, 0)
        self.assertEqual(self.db.query(User).one().role, "member")

    def test_duplicate_email_exits_1(self) -> None:
        self.assertEqual(self.run_cli("lid@croquet.nl", "hoepel123")[0], 0)
        code, _, err = self.run_cli("LID@croquet.nl", "anders456")
        self.assertEqual(code, 1)
        self.assertIn("already exists", err)
        self.assertEqual(self.db.query(User).count(), 1)

    def test_invalid_email_or_empty_password_exits_1(self) -> None:
        for argv in (("not-an-email", "hoepel123"), ("lid@croquet.nl", "")):
            with self.subTest(argv=argv):
                code, _, err = self.run_cli(*argv)
                self.assertEqual(code, 1)
                self.assertTrue(err)
        self.assertEqual(self.db.query(User).count(), 0)

    def test_unknown_role_is_rejected_by_argparse(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            self.run_cli("lid@croquet.nl", "hoepel123", "superuser")
        self.assertNotEqual(ctx.exception.code, 0)
        self.assertEqual(self.db.query(User).count(), 0)


class TestSessionCleanupCli(CliTestCase):
    """The cron entrypoint sweeps even when the in-process timer is switched off."""

    settings_overrides = {"SESSION_CLEANUP_SCHEDULER_ENABLED": False}

    def setUp(self) -> None:
        super().setUp()
        user = add_user(self.db)
        now = datetime.now(UTC)
        ttl = timedelta(days=30)
        add_session(self.db, user, "stale", now - timedelta(days=60), ttl)
        add_session(self.db, user, "live", now, ttl)

    def run_cli(self, settings) -> int:
        with patch("app.session_cleanup.get_settings", return_value=settings):
            return session_cleanup.main()

    def test_deletes_expired_sessions_with_timer_disabled(self) -> None:
        self.assertFalse(self.settings.cleanup_scheduled)
        with self.assertLogs("app.services.session_cleanup", level="INFO"):
            self.assertEqual(self.run_cli(self.settings), 0)
        self.assertEqual(count_sessions(self.db, "stale"), 0)
        self.assertEqual(count_sessions(self.db, "live"), 1)

    def test_master_switch_off_deletes_nothing(self) -> None:
        settings = self.settings.model_copy(update={"SESSION_CLEANUP_ENABLED": False})
        self.assertEqual(self.run_cli(settings), 0)
        self.assertEqual(count_sessions(self.db), 2)

    def test_store_failure_exits_1(self) -> None:
        Base.metadata.drop_all(self.engine)
        with self.assertLogs("app.session_cleanup", level="ERROR"):
            self.assertEqual(self.run_cli(self.settings), 1)


if __name__ == "__main__":
    unittest.main()
