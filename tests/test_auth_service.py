# -*- coding: utf-8 -*-

from __future__ import annotations

import unittest

from cardiasense.auth.models import UserRole
from cardiasense.auth.service import DEMO_CLINICAL_USER, login, logout, register
from cardiasense.errors import RegistrationConflict, UserNotFound
from cardiasense.records.backends import MemoryBackend
from cardiasense.records.storage import LocalRecordStore


class TestAuthService(unittest.TestCase):
    def setUp(self) -> None:
        self.store = LocalRecordStore(MemoryBackend())

    def test_register_creates_user_and_session(self) -> None:
        user = register(self.store, name="  Asha Rao ", email=" Asha@Example.com ", role=UserRole.patient)

        self.assertEqual(user.name, "Asha Rao")
        self.assertEqual(user.email, "asha@example.com")
        self.assertRegex(user.medical_id or "", r"^CS-\d{1,5}$")
        self.assertEqual(self.store.get_users(), [user])
        self.assertEqual(self.store.get_session(), user)

    def test_register_rejects_duplicate_email(self) -> None:
        register(self.store, name="Asha", email="asha@example.com")
        with self.assertRaises(RegistrationConflict) as ctx:
            register(self.store, name="Other", email="ASHA@example.com")
        self.assertEqual(str(ctx.exception), "This email is already registered.")
        self.assertEqual(len(self.store.get_users()), 1)

    def test_register_rejects_blank_name(self) -> None:
        with self.assertRaises(ValueError):
            register(self.store, name="   ", email="blank@example.com")
        self.assertEqual(self.store.get_users(), [])
        self.assertIsNone(self.store.get_session())

    def test_ids_are_unique(self) -> None:
        a = register(self.store, name="A", email="a@example.com")
        b = register(self.store, name="B", email="b@example.com")
        self.assertNotEqual(a.id, b.id)

    def test_login_is_case_insensitive(self) -> None:
        user = register(self.store, name="Asha", email="asha@example.com")
        logout(self.store)
        self.assertIsNone(self.store.get_session())

        self.assertEqual(login(self.store, email="  ASHA@example.com"), user)
        self.assertEqual(self.store.get_session(), user)

    def test_login_unknown_email(self) -> None:
        with self.assertRaises(UserNotFound):
            login(self.store, email="ghost@example.com")
        self.assertIsNone(self.store.get_session())

    def test_demo_clinical_account(self) -> None:
        user = login(self.store, email="Clinical@CardiaSense.in")
        self.assertEqual(user, DEMO_CLINICAL_USER)
        self.assertEqual(user.role, UserRole.clinical)
        self.assertEqual(self.store.get_users(), [])


if __name__ == "__main__":
    unittest.main()
