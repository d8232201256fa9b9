# -*- coding: utf-8 -*-

from __future__ import annotations

import json
import shutil
import tempfile
import unittest
from pathlib import Path

from cardiasense.assessment.models import PredictionResult
from cardiasense.auth.models import User, UserRole
from cardiasense.errors import RegistrationConflict, StorageWriteError
from cardiasense.records.backends import JsonFileBackend, MemoryBackend, SqliteBackend
from cardiasense.records.storage import SESSION_KEY, USERS_KEY, LocalRecordStore, history_key

from ai_fakes import ReadOnlyBackend, make_assessment, scenario_patient


def _user(user_id: str, email: str) -> User:
    return User(id=user_id, name=f"User {user_id}", email=email, role=UserRole.patient, medical_id="CS-1")


def _result(user_id: str, score: float = 50.0) -> PredictionResult:
    return PredictionResult.from_assessment(
        make_assessment(score=score, level="MODERATE"), user_id=user_id, inputs=scenario_patient()
    )


class TestLocalRecordStore(unittest.TestCase):
    def setUp(self) -> None:
        self.backend = MemoryBackend()
        self.store = LocalRecordStore(self.backend)

    def test_save_user_rejects_duplicate_email_case_insensitively(self) -> None:
        self.store.save_user(_user("a", "ann@example.com"))
        with self.assertRaises(RegistrationConflict):
            self.store.save_user(_user("b", " ANN@example.com "))
        self.assertEqual([u.id for u in self.store.get_users()], ["a"])

    def test_find_user_by_email(self) -> None:
        self.store.save_user(_user("a", "ann@example.com"))
        found = self.store.find_user_by_email("Ann@Example.com")
        assert found is not None
        self.assertEqual(found.id, "a")
        self.assertIsNone(self.store.find_user_by_email("nobody@example.com"))

    def test_session_set_get_clear(self) -> None:
        self.assertIsNone(self.store.get_session())
        user = _user("a", "ann@example.com")
        self.store.set_session(user)
        self.assertEqual(self.store.get_session(), user)
        self.store.clear_session()
        self.assertIsNone(self.store.get_session())

    def test_history_is_newest_first_and_capped(self) -> None:
        appended = []
        for i in range(20):
            result = _result("a", score=float(i))
            appended.append(result.id)
            self.store.append_history("a", result)

        history = self.store.get_history("a")
        self.assertEqual(len(history), 15)
        # Newest first; the five oldest were evicted.
        self.assertEqual([r.id for r in history], list(reversed(appended))[:15])
        self.assertNotIn(appended[4], [r.id for r in history])
        self.assertIn(appended[5], [r.id for r in history])

    def test_custom_history_limit(self) -> None:
        store = LocalRecordStore(MemoryBackend(), history_limit=3)
        for _ in range(5):
            store.append_history("a", _result("a"))
        self.assertEqual(len(store.get_history("a")), 3)

    def test_history_is_isolated_per_user(self) -> None:
        self.store.append_history("a", _result("a"))
        self.store.append_history("b", _result("b"))
        self.store.append_history("a", _result("a"))

        self.assertEqual(len(self.store.get_history("a")), 2)
        self.assertEqual(len(self.store.get_history("b")), 1)
        self.assertTrue(all(r.user_id == "a" for r in self.store.get_history("a")))
        self.assertEqual(self.store.get_history("c"), [])

    def test_append_rejects_result_of_another_user(self) -> None:
        with self.assertRaises(ValueError):
            self.store.append_history("a", _result("b"))

    def test_foreign_entries_in_stored_history_are_skipped(self) -> None:
        own = _result("a")
        foreign = _result("b")
        self.backend.set(
            history_key("a"),
            json.dumps([own.model_dump(mode="json", by_alias=True), foreign.model_dump(mode="json", by_alias=True)]),
        )
        self.assertEqual([r.id for r in self.store.get_history("a")], [own.id])

    def test_malformed_values_are_treated_as_absent(self) -> None:
        self.backend.set(USERS_KEY, "{not json")
        self.backend.set(SESSION_KEY, "[1, 2")
        self.backend.set(history_key("a"), "definitely not json")

        with self.assertLogs("cardiasense.records.storage", level="WARNING"):
            self.assertEqual(self.store.get_users(), [])
        self.assertIsNone(self.store.get_session())
        self.assertEqual(self.store.get_history("a"), [])

    def test_wrong_shapes_are_treated_as_absent(self) -> None:
        self.backend.set(USERS_KEY, json.dumps({"not": "a list"}))
        self.backend.set(SESSION_KEY, json.dumps({"id": "a"}))
        self.backend.set(history_key("a"), json.dumps([{"id": "x"}, 42]))

        self.assertEqual(self.store.get_users(), [])
        self.assertIsNone(self.store.get_session())
        self.assertEqual(self.store.get_history("a"), [])

    def test_malformed_history_recovers_on_next_append(self) -> None:
        self.backend.set(history_key("a"), "garbage")
        result = _result("a")
        self.store.append_history("a", result)
        self.assertEqual([r.id for r in self.store.get_history("a")], [result.id])

    def test_stored_format_uses_camel_case_keys(self) -> None:
        self.store.append_history("a", _result("a"))
        raw = json.loads(self.backend.get(history_key("a")) or "[]")
        self.assertIn("riskScore", raw[0])
        self.assertIn("userId", raw[0])
        self.assertEqual(raw[0]["inputs"]["oldpeak"], 2.3)

    def test_find_result(self) -> None:
        result = _result("a")
        self.store.append_history("a", result)
        self.assertEqual(self.store.find_result("a", result.id), result)
        self.assertIsNone(self.store.find_result("b", result.id))

    def test_write_failures_raise_storage_write_error(self) -> None:
        store = LocalRecordStore(ReadOnlyBackend())
        with self.assertRaises(StorageWriteError):
            store.append_history("a", _result("a"))
        with self.assertRaises(StorageWriteError):
            store.save_user(_user("a", "ann@example.com"))
        with self.assertRaises(StorageWriteError):
            store.clear_session()
        self.assertEqual(store.get_history("a"), [])


class TestPersistentBackends(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = Path(tempfile.mkdtemp(prefix="cardiasense-test-"))

    def tearDown(self) -> None:
        shutil.rmtree(self._tmp, ignore_errors=True)

    def _exercise(self, make_backend) -> None:
        store = LocalRecordStore(make_backend())
        user = _user("a", "ann@example.com")
        store.save_user(user)
        store.set_session(user)
        result = _result("a")
        store.append_history("a", result)

        # A fresh store over the same location sees the same records.
        reopened = LocalRecordStore(make_backend())
        self.assertEqual(reopened.get_users(), [user])
        self.assertEqual(reopened.get_session(), user)
        self.assertEqual(reopened.get_history("a"), [result])

        reopened.clear_session()
        self.assertIsNone(LocalRecordStore(make_backend()).get_session())

    def test_json_file_backend(self) -> None:
        self._exercise(lambda: JsonFileBackend(self._tmp / "records"))

    def test_json_file_backend_sanitizes_keys(self) -> None:
        backend = JsonFileBackend(self._tmp / "records")
        backend.set("cardia_history_../../escape", "[]")
        self.assertEqual(backend.get("cardia_history_../../escape"), "[]")
        for path in self._tmp.rglob("*.json"):
            self.assertEqual(path.parent, self._tmp / "records")

    def test_undecodable_file_is_treated_as_absent(self) -> None:
        root = self._tmp / "records"
        root.mkdir(parents=True)
        (root / "cardia_history_u.json").write_bytes(b"\xff\xfe[garbage")
        (root / "cardia_session.json").write_bytes(b"\xff\xfe{")
        store = LocalRecordStore(JsonFileBackend(root))

        with self.assertLogs("cardiasense.records.storage", level="WARNING"):
            self.assertEqual(store.get_history("u"), [])
        self.assertIsNone(store.get_session())

        result = _result("u")
        store.append_history("u", result)
        self.assertEqual(store.get_history("u"), [result])

    def test_sqlite_backend(self) -> None:
        self._exercise(lambda: SqliteBackend(self._tmp / "cardiasense.db"))

    def test_missing_keys_read_as_none(self) -> None:
        for backend in (MemoryBackend(), JsonFileBackend(self._tmp / "r"), SqliteBackend(self._tmp / "x.db")):
            self.assertIsNone(backend.get("missing"))
            backend.delete("missing")


if __name__ == "__main__":
    unittest.main()
