# -*- coding: utf-8 -*-
"""Dashboard — API endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from ..assessment.models import DEFAULT_PATIENT_DATA, FIELD_RULES, PatientData, PredictionResult
from ..auth.models import User
from ..auth.security import get_current_user
from ..errors import ComputationInProgress, InputRangeError
from .controller import DashboardController
from .models import DashboardState, FieldRuleOut, InputsUpdateRequest

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


async def get_controller(request: Request, user: User = Depends(get_current_user)) -> DashboardController:
    controller: DashboardController = request.app.state.controller
    controller.bind_user(user)
    return controller


@router.get("", response_model=DashboardState, summary="Current dashboard state")
async def get_state(controller: DashboardController = Depends(get_controller)):
    return controller.snapshot()


@router.get("/fields", response_model=List[FieldRuleOut], summary="Form field ranges and defaults")
def list_fields():
    defaults = DEFAULT_PATIENT_DATA.model_dump()
    return [
        FieldRuleOut(name=name, label=rule.label, min=rule.min, max=rule.max, default=defaults[name])
        for name, rule in FIELD_RULES.items()
    ]


@router.put("/inputs", response_model=DashboardState, summary="Update form inputs")
async def update_inputs(request: InputsUpdateRequest, controller: DashboardController = Depends(get_controller)):
    try:
        controller.update_inputs(**request.model_dump(exclude_none=True))
    except InputRangeError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return controller.snapshot()


@router.post("/calculate", response_model=DashboardState, summary="Run a risk assessment")
async def calculate(
    data: Optional[PatientData] = None,
    supersede: bool = Query(default=False, description="Cancel a running assessment instead of rejecting"),
    controller: DashboardController = Depends(get_controller),
):
    try:
        await controller.calculate(data, supersede=supersede)
    except ComputationInProgress as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    # Failures leave the previous result in place and surface via lastError.
    return controller.snapshot()


@router.post("/cancel", response_model=DashboardState, summary="Cancel a running assessment")
async def cancel(controller: DashboardController = Depends(get_controller)):
    controller.cancel()
    return controller.snapshot()


@router.get("/history", response_model=List[PredictionResult], summary="Assessment history (newest first)")
async def history(controller: DashboardController = Depends(get_controller)):
    return controller.history


@router.post("/history/{result_id}/select", response_model=DashboardState, summary="Display a past assessment")
async def select(result_id: str, controller: DashboardController = Depends(get_controller)):
    try:
        controller.select(result_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Assessment not found") from exc
    return controller.snapshot()
