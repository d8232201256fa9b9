# -*- coding: utf-8 -*-
"""Clinical tools — literature search, symptom NLP and image analysis endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from ..assessment.client import RiskAssessmentClient
from ..assessment.models import SearchResult, SymptomAnalysis
from ..auth.models import User
from ..auth.security import get_current_user
from ..errors import AssessmentFailure
from .models import ImageAnalysisRequest, ImageAnalysisResponse, ResearchSearchRequest, SymptomAnalysisRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/clinical", tags=["Clinical"])


def get_client(request: Request) -> RiskAssessmentClient:
    return request.app.state.client


@router.post("/search", response_model=SearchResult, summary="Search clinical research (web grounded)")
async def search(
    request: ResearchSearchRequest,
    client: RiskAssessmentClient = Depends(get_client),
    user: User = Depends(get_current_user),  # noqa: ARG001
):
    query = request.query.strip()
    if not query:
        raise HTTPException(status_code=400, detail="query must not be empty")
    try:
        return await client.search_clinical_research(query)
    except AssessmentFailure as exc:
        logger.warning("clinical search failed: %s", exc)
        raise HTTPException(status_code=502, detail=f"Search failed: {exc}") from exc


@router.post("/symptoms", response_model=SymptomAnalysis, summary="Analyze a symptom narrative")
async def symptoms(
    request: SymptomAnalysisRequest,
    client: RiskAssessmentClient = Depends(get_client),
    user: User = Depends(get_current_user),  # noqa: ARG001
):
    text = request.text.strip()
    if not text:
        raise HTTPException(status_code=400, detail="text must not be empty")
    try:
        return await client.analyze_symptoms_nlp(text)
    except AssessmentFailure as exc:
        logger.warning("symptom analysis failed: %s", exc)
        raise HTTPException(status_code=502, detail=f"NLP analysis failed: {exc}") from exc


@router.post("/images", response_model=ImageAnalysisResponse, summary="Analyze an ECG or X-ray image")
async def images(
    request: ImageAnalysisRequest,
    client: RiskAssessmentClient = Depends(get_client),
    user: User = Depends(get_current_user),  # noqa: ARG001
):
    try:
        analysis = await client.analyze_diagnostic_image(request.image_base64, request.kind)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except AssessmentFailure as exc:
        logger.warning("image analysis failed: %s", exc)
        raise HTTPException(status_code=502, detail="Error analyzing image.") from exc
    return ImageAnalysisResponse(analysis=analysis, kind=request.kind, model=client.ai.vision_model)
