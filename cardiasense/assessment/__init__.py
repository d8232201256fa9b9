# -*- coding: utf-8 -*-
"""Risk assessment: patient models and the AI collaborator client."""

from .client import RiskAssessmentClient
from .models import PatientData, PredictionResult, RiskAssessment, RiskLevel

__all__ = [
    "PatientData",
    "PredictionResult",
    "RiskAssessment",
    "RiskAssessmentClient",
    "RiskLevel",
]
