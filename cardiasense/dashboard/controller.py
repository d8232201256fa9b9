# -*- coding: utf-8 -*-
"""Dashboard — state controller for one signed-in user.

States are IDLE (no result yet), COMPUTING (assessment in flight) and READY
(a result is displayed). Each calculation gets a generation number; only the
completion of the newest generation for the still-bound user may commit to
history and the display. Anything older is dropped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional, Protocol

from ..assessment.models import (
    DEFAULT_PATIENT_DATA,
    FIELD_RULES,
    PatientData,
    PredictionResult,
    RiskAssessment,
)
from ..auth.models import User
from ..errors import AssessmentFailure, ComputationInProgress, StorageWriteError
from ..records.storage import LocalRecordStore
from .models import DashboardState, DashboardStatus

logger = logging.getLogger(__name__)


class Assessor(Protocol):
    async def assess(self, data: PatientData) -> RiskAssessment: ...


class NoActiveUser(RuntimeError):
    pass


class DashboardController:
    def __init__(self, store: LocalRecordStore, assessor: Assessor) -> None:
        self._store = store
        self._assessor = assessor
        self._user: Optional[User] = None
        self._inputs: PatientData = DEFAULT_PATIENT_DATA
        self._result: Optional[PredictionResult] = None
        self._history: List[PredictionResult] = []
        self._generation = 0
        self._task: Optional[asyncio.Task] = None
        self.last_error: Optional[str] = None

    # ---------- read-only views ----------

    @property
    def user(self) -> Optional[User]:
        return self._user

    @property
    def inputs(self) -> PatientData:
        return self._inputs

    @property
    def result(self) -> Optional[PredictionResult]:
        return self._result

    @property
    def history(self) -> List[PredictionResult]:
        return list(self._history)

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def computing(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def status(self) -> DashboardStatus:
        if self.computing:
            return DashboardStatus.computing
        if self._result is not None:
            return DashboardStatus.ready
        return DashboardStatus.idle

    def snapshot(self) -> DashboardState:
        return DashboardState(
            status=self.status,
            user_id=self._user.id if self._user else None,
            inputs=self._inputs,
            result=self._result,
            history=list(self._history),
            last_error=self.last_error,
        )

    # ---------- transitions ----------

    def bind_user(self, user: Optional[User]) -> None:
        """Switch the active user, reloading everything from the store."""
        new_id = user.id if user else None
        if self._user is not None and self._user.id == new_id:
            self._user = user
            return

        self._abort_inflight()
        self._user = user
        self._inputs = DEFAULT_PATIENT_DATA
        self.last_error = None
        if user is None:
            self._history = []
            self._result = None
            return
        self._history = self._store.get_history(user.id)
        self._result = self._history[0] if self._history else None

    def update_inputs(self, **changes: Any) -> PatientData:
        unknown = set(changes) - set(FIELD_RULES)
        if unknown:
            raise ValueError(f"Unknown patient fields: {', '.join(sorted(unknown))}")
        merged = {**self._inputs.model_dump(), **changes}
        self._inputs = PatientData.checked(merged)
        return self._inputs

    def select(self, result_id: str) -> PredictionResult:
        """Display a history entry. Never recomputes and never touches history."""
        for entry in self._history:
            if entry.id == result_id:
                self._result = entry
                return entry
        raise KeyError(result_id)

    def cancel(self) -> bool:
        """Abort the in-flight assessment, if any. Returns whether one was running."""
        was_running = self.computing
        self._abort_inflight()
        return was_running

    def _abort_inflight(self) -> None:
        self._generation += 1
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    def _require_user(self) -> User:
        if self._user is None:
            raise NoActiveUser("No active user session")
        return self._user

    async def calculate(
        self,
        data: Optional[PatientData] = None,
        *,
        supersede: bool = False,
    ) -> Optional[PredictionResult]:
        """Assess ``data`` (or the current form inputs) and commit the result.

        Returns None when the assessment failed or was superseded; the
        previously displayed result is left in place in both cases.
        """
        user = self._require_user()
        if self.computing:
            if not supersede:
                raise ComputationInProgress("A risk assessment is already running")
            self._abort_inflight()

        inputs = data if data is not None else self._inputs
        self._inputs = inputs
        self._generation += 1
        generation = self._generation
        self.last_error = None

        task = asyncio.create_task(self._assessor.assess(inputs))
        self._task = task
        try:
            assessment = await task
        except asyncio.CancelledError:
            if generation != self._generation:
                logger.info("assessment %d for user %s was cancelled", generation, user.id)
                return None
            raise
        except AssessmentFailure as exc:
            logger.warning("risk assessment failed for user %s: %s", user.id, exc)
            if generation == self._generation:
                self.last_error = f"Risk assessment failed: {exc}"
            return None
        finally:
            if self._task is task:
                self._task = None

        if generation != self._generation or self._user is None or self._user.id != user.id:
            logger.info("discarding stale assessment %d for user %s", generation, user.id)
            return None

        result = PredictionResult.from_assessment(assessment, user_id=user.id, inputs=inputs)
        try:
            self._history = self._store.append_history(user.id, result)
        except StorageWriteError as exc:
            logger.error("could not save assessment for user %s: %s", user.id, exc)
            self.last_error = f"Could not save assessment: {exc}"
            return None
        self._result = result
        return result
