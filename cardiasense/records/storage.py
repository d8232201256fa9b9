# -*- coding: utf-8 -*-
"""Records — user registry, active session and per-user prediction history.

Values are JSON text under three kinds of keys, matching what the web client
kept in local storage:

* ``cardia_users``            list of registered users
* ``cardia_session``          the signed-in user, or absent
* ``cardia_history_<userId>`` newest-first list of prediction results

A value that cannot be decoded is treated as absent. Nothing here is
transactional; concurrent writers race and the last one wins.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import Any, List, Optional

from pydantic import ValidationError

from ..assessment.models import PredictionResult
from ..auth.models import User
from ..errors import RegistrationConflict, StorageReadError, StorageWriteError
from .backends import KeyValueBackend

logger = logging.getLogger(__name__)

USERS_KEY = "cardia_users"
SESSION_KEY = "cardia_session"
HISTORY_KEY_PREFIX = "cardia_history_"
DEFAULT_HISTORY_LIMIT = 15


def history_key(user_id: str) -> str:
    return f"{HISTORY_KEY_PREFIX}{user_id}"


def normalize_email(email: str) -> str:
    return email.lower().strip()


def _dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


class LocalRecordStore:
    def __init__(self, backend: KeyValueBackend, *, history_limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if history_limit < 1:
            raise ValueError("history_limit must be >= 1")
        self.backend = backend
        self.history_limit = history_limit

    # ---------- raw access ----------

    def _decode(self, key: str) -> Any:
        try:
            raw = self.backend.get(key)
            if raw is None:
                return None
            return json.loads(raw)
        except ValueError as exc:
            # UnicodeDecodeError from a file backend lands here too.
            raise StorageReadError(key, str(exc)) from exc

    def _save(self, key: str, value: Any) -> None:
        try:
            self.backend.set(key, _dumps(value))
        except (OSError, sqlite3.Error) as exc:
            raise StorageWriteError(key, str(exc)) from exc

    def _load(self, key: str) -> Any:
        try:
            return self._decode(key)
        except StorageReadError as exc:
            logger.warning("ignoring stored value: %s", exc)
            return None

    # ---------- users ----------

    def get_users(self) -> List[User]:
        raw = self._load(USERS_KEY)
        if not isinstance(raw, list):
            if raw is not None:
                logger.warning("ignoring stored value for %r: expected a list", USERS_KEY)
            return []
        users: List[User] = []
        for item in raw:
            try:
                users.append(User.model_validate(item))
            except ValidationError:
                logger.warning("skipping malformed user record in %r", USERS_KEY)
        return users

    def find_user_by_email(self, email: str) -> Optional[User]:
        wanted = normalize_email(email)
        for user in self.get_users():
            if normalize_email(user.email) == wanted:
                return user
        return None

    def save_user(self, user: User) -> None:
        users = self.get_users()
        wanted = normalize_email(user.email)
        if any(normalize_email(u.email) == wanted for u in users):
            raise RegistrationConflict("This email is already registered.")
        users.append(user)
        self._save(USERS_KEY, [u.model_dump(mode="json", by_alias=True) for u in users])

    # ---------- session ----------

    def get_session(self) -> Optional[User]:
        raw = self._load(SESSION_KEY)
        if raw is None:
            return None
        try:
            return User.model_validate(raw)
        except ValidationError:
            logger.warning("ignoring malformed session record")
            return None

    def set_session(self, user: User) -> None:
        self._save(SESSION_KEY, user.model_dump(mode="json", by_alias=True))

    def clear_session(self) -> None:
        try:
            self.backend.delete(SESSION_KEY)
        except (OSError, sqlite3.Error) as exc:
            raise StorageWriteError(SESSION_KEY, str(exc)) from exc

    # ---------- history ----------

    def get_history(self, user_id: str) -> List[PredictionResult]:
        key = history_key(user_id)
        raw = self._load(key)
        if not isinstance(raw, list):
            if raw is not None:
                logger.warning("ignoring stored value for %r: expected a list", key)
            return []
        results: List[PredictionResult] = []
        for item in raw:
            try:
                result = PredictionResult.model_validate(item)
            except ValidationError:
                logger.warning("skipping malformed history entry in %r", key)
                continue
            if result.user_id != user_id:
                logger.warning("skipping history entry %s owned by another user", result.id)
                continue
            results.append(result)
        return results[: self.history_limit]

    def append_history(self, user_id: str, result: PredictionResult) -> List[PredictionResult]:
        if result.user_id != user_id:
            raise ValueError(f"result {result.id} belongs to {result.user_id!r}, not {user_id!r}")
        history = [result, *self.get_history(user_id)][: self.history_limit]
        self._save(history_key(user_id), [r.model_dump(mode="json", by_alias=True) for r in history])
        return history

    def find_result(self, user_id: str, result_id: str) -> Optional[PredictionResult]:
        for result in self.get_history(user_id):
            if result.id == result_id:
                return result
        return None
