# -*- coding: utf-8 -*-
"""Dashboard — Pydantic models for API payloads."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import Field

from ..assessment.models import CamelModel, PatientData, PredictionResult


class DashboardStatus(str, Enum):
    idle = "IDLE"
    computing = "COMPUTING"
    ready = "READY"


class DashboardState(CamelModel):
    status: DashboardStatus
    user_id: Optional[str] = None
    inputs: PatientData
    result: Optional[PredictionResult] = None
    history: List[PredictionResult] = Field(default_factory=list)
    last_error: Optional[str] = None


class FieldRuleOut(CamelModel):
    name: str
    label: str
    min: float
    max: float
    default: float


class InputsUpdateRequest(CamelModel):
    age: Optional[int] = None
    sex: Optional[int] = None
    cp: Optional[int] = None
    trestbps: Optional[int] = None
    chol: Optional[int] = None
    fbs: Optional[int] = None
    restecg: Optional[int] = None
    thalach: Optional[int] = None
    exang: Optional[int] = None
    oldpeak: Optional[float] = None
    slope: Optional[int] = None
    ca: Optional[int] = None
    thal: Optional[int] = None
