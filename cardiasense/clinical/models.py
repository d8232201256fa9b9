# -*- coding: utf-8 -*-
"""Clinical tools — Pydantic models."""

from __future__ import annotations

from pydantic import Field

from ..assessment.models import CamelModel, ImageKind


class ResearchSearchRequest(CamelModel):
    query: str = Field(..., max_length=2000)


class SymptomAnalysisRequest(CamelModel):
    text: str = Field(..., max_length=10000)


class ImageAnalysisRequest(CamelModel):
    image_base64: str = Field(..., min_length=16, description="Raw base64 or a data: URL")
    kind: ImageKind = ImageKind.ecg


class ImageAnalysisResponse(CamelModel):
    analysis: str
    kind: ImageKind
    model: str
