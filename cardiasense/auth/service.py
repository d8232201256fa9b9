# -*- coding: utf-8 -*-
"""Auth — registration and sign-in against the local record store.

Sign-in is by email only; there are no passwords.
"""

from __future__ import annotations

import logging
import random
from uuid import uuid4

from ..errors import RegistrationConflict, UserNotFound
from ..records.storage import LocalRecordStore, normalize_email
from .models import User, UserRole

logger = logging.getLogger(__name__)

DEMO_CLINICAL_EMAIL = "clinical@cardiasense.in"
DEMO_CLINICAL_USER = User(
    id="demo-clinical",
    name="Dr. Rajesh Sharma",
    email=DEMO_CLINICAL_EMAIL,
    role=UserRole.clinical,
    medical_id="CS-DEMO-01",
)


def _new_medical_id() -> str:
    return f"CS-{random.randrange(100000)}"


def register(store: LocalRecordStore, *, name: str, email: str, role: UserRole = UserRole.patient) -> User:
    """Create a user and sign them in. Raises RegistrationConflict on a duplicate email."""
    if not name.strip():
        raise ValueError("name must not be blank")
    email_norm = normalize_email(email)
    if store.find_user_by_email(email_norm):
        raise RegistrationConflict("This email is already registered.")

    user = User(
        id=str(uuid4()),
        name=name.strip(),
        email=email_norm,
        role=role,
        medical_id=_new_medical_id(),
    )
    store.save_user(user)
    store.set_session(user)
    logger.info("registered user %s (%s)", user.id, user.role.value)
    return user


def login(store: LocalRecordStore, *, email: str) -> User:
    user = store.find_user_by_email(email)
    if user is None and normalize_email(email) == DEMO_CLINICAL_EMAIL:
        user = DEMO_CLINICAL_USER
    if user is None:
        raise UserNotFound("User profile not found. Please register.")
    store.set_session(user)
    logger.info("user %s signed in", user.id)
    return user


def logout(store: LocalRecordStore) -> None:
    store.clear_session()
