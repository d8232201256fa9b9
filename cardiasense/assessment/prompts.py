# -*- coding: utf-8 -*-
"""Assessment — prompt templates sent to the AI collaborator."""

from __future__ import annotations

from datetime import date

from .models import ImageKind, PatientData

JSON_SYSTEM_PROMPT = (
    "You are a clinical decision-support assistant. Return STRICT JSON only. "
    "Do NOT wrap in markdown or code fences. "
    "Output MUST start with '{' and end with '}'. "
    "Use double quotes for all keys/strings and no trailing commas."
)

RISK_SCHEMA = (
    "{\n"
    '  "riskScore": number (0-100),\n'
    '  "riskLevel": "LOW" | "MODERATE" | "HIGH",\n'
    '  "clinicalSummary": "string",\n'
    '  "explanation": [{"feature": "string", "impact": number (-1..1)}] (exactly 5),\n'
    '  "forecast": [{"year": integer, "risk": number (0-100)}] (exactly 5),\n'
    '  "treatmentSuggestions": [{"medication": "string", "sensitivity": "string", "description": "string"}] (exactly 3)\n'
    "}\n"
)

SYMPTOM_SCHEMA = (
    "{\n"
    '  "summary": "string",\n'
    '  "accuracy": number (0-1),\n'
    '  "detectedSymptoms": ["string"]\n'
    "}\n"
)


def risk_prompt(data: PatientData, start_year: int | None = None) -> str:
    year = start_year or date.today().year
    sex = "Male" if data.sex == 1 else "Female"
    return (
        "Act as a senior cardiologist and machine learning expert. Analyze these patient metrics:\n"
        f"Age: {data.age}, Sex: {sex}, Chest Pain: {data.cp}, "
        f"BP: {data.trestbps}, Cholesterol: {data.chol}, FBS: {data.fbs}, "
        f"ECG: {data.restecg}, MaxHR: {data.thalach}, Ex.Angina: {data.exang}, "
        f"Oldpeak: {data.oldpeak}, Slope: {data.slope}, CA: {data.ca}, Thal: {data.thal}.\n"
        "\n"
        "Instructions:\n"
        "1. Calculate a riskScore (0-100).\n"
        "2. Determine riskLevel (LOW/MODERATE/HIGH).\n"
        "3. Write a clinicalSummary (a formal medical paragraph).\n"
        "4. Provide feature attribution (SHAP values): an array of the 5 features that impacted "
        "the score most, with 'impact' between -1 (reduces risk) and 1 (increases risk).\n"
        f"5. Provide a 5-year longitudinal forecast: an array of 5 years starting from {year} "
        "with the estimated risk % for each year.\n"
        "6. Provide treatmentSuggestions (array of 3 items with medication, sensitivity, and description).\n"
        "\n"
        "Output JSON schema (STRICT):\n"
        f"{RISK_SCHEMA}"
    )


def research_prompt(query: str) -> str:
    return (
        f"Find latest medical research or clinical guidelines for: {query}. "
        "Focus on heart disease and cardiovascular health."
    )


def symptom_prompt(text: str) -> str:
    return (
        f'Analyze these heart-related symptoms using medical NLP: "{text}".\n'
        "Provide a professional clinical summary, a list of detected symptoms, "
        "and an interpretation accuracy score (0-1).\n"
        "\n"
        "Output JSON schema (STRICT):\n"
        f"{SYMPTOM_SCHEMA}"
    )


def image_prompt(kind: ImageKind) -> str:
    return (
        f"Analyze this medical {kind.value} image for any signs of cardiovascular abnormalities "
        "or heart disease biomarkers. Provide detailed clinical findings."
    )
