# -*- coding: utf-8 -*-
"""Domain errors shared by the store, the AI client and the dashboard."""

from __future__ import annotations


class CardiaError(Exception):
    """Base class for all CardiaSense domain errors."""


class InputRangeError(CardiaError, ValueError):
    """A patient field fell outside its declared clinical range."""

    def __init__(self, field: str, value: float, minimum: float, maximum: float) -> None:
        self.field = field
        self.value = value
        self.minimum = minimum
        self.maximum = maximum
        super().__init__(f"{field}={value} is outside [{minimum}, {maximum}]")


class StorageReadError(CardiaError):
    """A persisted value could not be decoded."""

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        super().__init__(f"malformed value for {key!r}: {reason}")


class StorageWriteError(CardiaError):
    """A value could not be persisted by the storage backend."""

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        super().__init__(f"could not write {key!r}: {reason}")


class AssessmentFailure(CardiaError):
    """The AI collaborator could not be reached or returned an error."""


class ParseError(AssessmentFailure):
    """The AI collaborator answered, but not with the declared structure."""


class RegistrationConflict(CardiaError):
    """Registration attempted with an email that is already registered."""


class UserNotFound(CardiaError):
    """Login attempted for an email with no registered profile."""


class ComputationInProgress(CardiaError):
    """A risk assessment is already running for the active user."""
