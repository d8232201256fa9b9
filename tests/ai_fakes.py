# -*- coding: utf-8 -*-
"""Fakes shared by the test modules: canned AI provider responses and a failing store backend."""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, List

import httpx

from cardiasense.assessment.client import AISettings, RiskAssessmentClient
from cardiasense.assessment.models import PatientData, RiskAssessment
from cardiasense.records.backends import MemoryBackend

SCENARIO_PROFILE: Dict[str, Any] = {
    "age": 63, "sex": 1, "cp": 3, "trestbps": 145, "chol": 233, "fbs": 1,
    "restecg": 0, "thalach": 150, "exang": 0, "oldpeak": 2.3, "slope": 0, "ca": 0, "thal": 1,
}


def scenario_patient() -> PatientData:
    return PatientData(**SCENARIO_PROFILE)


def risk_payload(score: float = 72.5, level: str = "HIGH") -> Dict[str, Any]:
    return {
        "riskScore": score,
        "riskLevel": level,
        "clinicalSummary": "Elevated cardiovascular risk driven by age and ST depression.",
        "explanation": [
            {"feature": "age", "impact": 0.42},
            {"feature": "oldpeak", "impact": 0.35},
            {"feature": "cp", "impact": 0.2},
            {"feature": "thalach", "impact": -0.15},
            {"feature": "ca", "impact": -0.05},
        ],
        "forecast": [{"year": 2026 + i, "risk": min(100.0, score + 2 * i)} for i in range(5)],
        "treatmentSuggestions": [
            {"medication": "Atorvastatin", "sensitivity": "High", "description": "Lower LDL cholesterol."},
            {"medication": "Aspirin", "sensitivity": "Moderate", "description": "Antiplatelet prophylaxis."},
            {"medication": "Metoprolol", "sensitivity": "Moderate", "description": "Rate control under exertion."},
        ],
    }


def make_assessment(score: float = 72.5, level: str = "HIGH") -> RiskAssessment:
    return RiskAssessment.model_validate(risk_payload(score, level))


def completion(content: str, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}],
    }
    body.update(extra)
    return body


def fake_ai_settings(**overrides: Any) -> AISettings:
    values: Dict[str, Any] = dict(
        base_url="https://ai.example.test/v1",
        api_key="test-key",
        model="text-model",
        vision_model="vision-model",
        timeout=5.0,
        temperature=0.2,
        max_tokens=1024,
        enable_search=True,
        max_image_bytes=1024,
    )
    values.update(overrides)
    return AISettings(**values)


class RecordingHandler:
    """httpx.MockTransport handler that records requests and replies from a callable."""

    def __init__(self, reply: Callable[[Dict[str, Any]], httpx.Response]) -> None:
        self.reply = reply
        self.requests: List[httpx.Request] = []
        self.bodies: List[Dict[str, Any]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content.decode("utf-8"))
        self.requests.append(request)
        self.bodies.append(body)
        return self.reply(body)


def json_reply(payload: Dict[str, Any], status_code: int = 200) -> Callable[[Dict[str, Any]], httpx.Response]:
    return lambda body: httpx.Response(status_code, json=payload)


def make_client(handler: Callable[[httpx.Request], httpx.Response], **overrides: Any) -> RiskAssessmentClient:
    return RiskAssessmentClient(fake_ai_settings(**overrides), transport=httpx.MockTransport(handler))


class ReadOnlyBackend(MemoryBackend):
    """Reads work; every write fails the way a full disk does."""

    def set(self, key: str, value: str) -> None:
        raise OSError(28, "No space left on device")

    def delete(self, key: str) -> None:
        raise OSError(28, "No space left on device")
