# -*- coding: utf-8 -*-
"""Reports — PDF export endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from ..assessment.models import PredictionResult
from ..auth.models import User
from ..auth.security import get_current_user, get_store
from .pdf_generator import PDFReportGenerator, build_report, content_disposition

router = APIRouter(prefix="/api/reports", tags=["Reports"])


def _generator(request: Request) -> PDFReportGenerator:
    state = request.app.state
    if getattr(state, "pdf_generator", None) is None:
        try:
            state.pdf_generator = PDFReportGenerator()
        except Exception as exc:
            raise HTTPException(status_code=500, detail=f"PDF generator initialization failed: {exc}") from exc
    return state.pdf_generator


def _pdf_response(request: Request, user: User, result: PredictionResult) -> Response:
    report = build_report(user, result, request.app.state.report_metadata)
    pdf_content = _generator(request).generate_report(report)
    return Response(
        content=pdf_content,
        media_type="application/pdf",
        headers={"Content-Disposition": content_disposition(report)},
    )


@router.get("/latest", summary="PDF report of the latest assessment")
def latest_report(request: Request, user: User = Depends(get_current_user)):
    history = get_store(request).get_history(user.id)
    if not history:
        raise HTTPException(status_code=404, detail="No assessment available")
    return _pdf_response(request, user, history[0])


@router.get("/{result_id}", summary="PDF report of one assessment")
def report(result_id: str, request: Request, user: User = Depends(get_current_user)):
    result = get_store(request).find_result(user.id, result_id)
    if result is None:
        raise HTTPException(status_code=404, detail="Assessment not found")
    return _pdf_response(request, user, result)
