# -*- coding: utf-8 -*-
"""Assessment — Pydantic models for patient profiles and AI results."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..errors import InputRangeError


@dataclass(frozen=True)
class FieldRule:
    label: str
    min: float
    max: float


FIELD_RULES: Dict[str, FieldRule] = {
    "age": FieldRule("Age (Years)", 20, 110),
    "sex": FieldRule("Sex (0:F, 1:M)", 0, 1),
    "cp": FieldRule("Chest Pain Type (0-3)", 0, 3),
    "trestbps": FieldRule("Resting BP (mmHg)", 80, 200),
    "chol": FieldRule("Cholesterol (mg/dl)", 100, 600),
    "fbs": FieldRule("FBS > 120 (0/1)", 0, 1),
    "restecg": FieldRule("Rest ECG (0-2)", 0, 2),
    "thalach": FieldRule("Max HR", 60, 220),
    "exang": FieldRule("Ex. Angina (0/1)", 0, 1),
    "oldpeak": FieldRule("ST Dep. (0-7)", 0, 7),
    "slope": FieldRule("ST Slope (0-2)", 0, 2),
    "ca": FieldRule("Major Vessels (0-4)", 0, 4),
    "thal": FieldRule("Thalassemia (0-3)", 0, 3),
}


def _ranged(name: str) -> Any:
    rule = FIELD_RULES[name]
    return Field(..., ge=rule.min, le=rule.max, description=rule.label)


class PatientData(BaseModel):
    """The 13 UCI Cleveland heart-disease features."""

    model_config = ConfigDict(frozen=True)

    age: int = _ranged("age")
    sex: int = _ranged("sex")  # 1 male, 0 female
    cp: int = _ranged("cp")
    trestbps: int = _ranged("trestbps")
    chol: int = _ranged("chol")
    fbs: int = _ranged("fbs")
    restecg: int = _ranged("restecg")
    thalach: int = _ranged("thalach")
    exang: int = _ranged("exang")
    oldpeak: float = _ranged("oldpeak")
    slope: int = _ranged("slope")
    ca: int = _ranged("ca")
    thal: int = _ranged("thal")

    @classmethod
    def checked(cls, values: Mapping[str, Any]) -> "PatientData":
        """Validate ``values`` against FIELD_RULES, raising InputRangeError on the first violation."""
        for name, rule in FIELD_RULES.items():
            raw = values.get(name)
            if isinstance(raw, (int, float)) and not isinstance(raw, bool):
                if raw < rule.min or raw > rule.max:
                    raise InputRangeError(name, raw, rule.min, rule.max)
        return cls.model_validate(dict(values))


DEFAULT_PATIENT_DATA = PatientData(
    age=45, sex=1, cp=1, trestbps=120, chol=240, fbs=0,
    restecg=0, thalach=150, exang=0, oldpeak=1.0, slope=1, ca=0, thal=2,
)


class RiskLevel(str, Enum):
    low = "LOW"
    moderate = "MODERATE"
    high = "HIGH"


# Score cut-offs: LOW < 30 <= MODERATE < 60 <= HIGH
MODERATE_THRESHOLD = 30.0
HIGH_THRESHOLD = 60.0


def classify_risk(score: float) -> RiskLevel:
    if score >= HIGH_THRESHOLD:
        return RiskLevel.high
    if score >= MODERATE_THRESHOLD:
        return RiskLevel.moderate
    return RiskLevel.low


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FeatureImpact(CamelModel):
    feature: str = Field(..., min_length=1)
    impact: float = Field(..., ge=-1, le=1, description="-1 reduces risk, 1 increases risk")


class ForecastPoint(CamelModel):
    year: int
    risk: float = Field(..., ge=0, le=100)


class TreatmentSuggestion(CamelModel):
    medication: str = Field(..., min_length=1)
    sensitivity: str
    description: str


class RiskAssessment(CamelModel):
    """Structured answer of one risk assessment call."""

    risk_score: float = Field(..., ge=0, le=100)
    risk_level: RiskLevel
    clinical_summary: str = Field(..., min_length=1)
    explanation: List[FeatureImpact] = Field(..., min_length=5, max_length=5)
    forecast: List[ForecastPoint] = Field(..., min_length=5, max_length=5)
    treatment_suggestions: List[TreatmentSuggestion] = Field(..., min_length=3, max_length=3)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class PredictionResult(RiskAssessment):
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    timestamp: str
    inputs: PatientData

    @classmethod
    def from_assessment(
        cls,
        assessment: RiskAssessment,
        *,
        user_id: str,
        inputs: PatientData,
    ) -> "PredictionResult":
        return cls(
            id=str(uuid4()),
            user_id=user_id,
            timestamp=_utc_now(),
            inputs=inputs,
            **assessment.model_dump(),
        )


class SymptomAnalysis(CamelModel):
    summary: str = Field(..., min_length=1)
    accuracy: float = Field(..., ge=0, le=1)
    detected_symptoms: List[str] = Field(default_factory=list)

    @field_validator("accuracy", mode="before")
    @classmethod
    def _rescale_percent(cls, value: object) -> object:
        """Models often report accuracy as a percentage (e.g. 85)."""
        if isinstance(value, (int, float)) and not isinstance(value, bool) and 1 < value <= 100:
            return value / 100.0
        return value


class SearchSource(CamelModel):
    title: str = "Medical Source"
    uri: str = "#"


class SearchResult(CamelModel):
    answer: str
    sources: List[SearchSource] = Field(default_factory=list)


class ImageKind(str, Enum):
    ecg = "ECG"
    xray = "XRAY"
