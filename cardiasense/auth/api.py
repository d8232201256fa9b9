# -*- coding: utf-8 -*-
"""Auth — API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request

from ..errors import RegistrationConflict, StorageWriteError, UserNotFound
from ..records.storage import LocalRecordStore
from .models import LoginRequest, RegisterRequest, User
from .security import get_current_user, get_store
from .service import login as login_user
from .service import logout as logout_user
from .service import register as register_user

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/register", response_model=User, summary="Register a new user and sign in")
def register(request: RegisterRequest, store: LocalRecordStore = Depends(get_store)):
    try:
        return register_user(store, name=request.name, email=request.email, role=request.role)
    except RegistrationConflict as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except StorageWriteError as exc:
        raise HTTPException(status_code=503, detail="Could not save user profile") from exc


@router.post("/login", response_model=User, summary="Sign in by email")
def login(request: LoginRequest, store: LocalRecordStore = Depends(get_store)):
    try:
        return login_user(store, email=request.email)
    except UserNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except StorageWriteError as exc:
        raise HTTPException(status_code=503, detail="Could not save session") from exc


@router.post("/logout", summary="Sign out")
async def logout(request: Request):
    try:
        logout_user(get_store(request))
    except StorageWriteError as exc:
        raise HTTPException(status_code=503, detail="Could not clear session") from exc
    request.app.state.controller.bind_user(None)
    return {"status": "ok"}


@router.get("/me", response_model=User, summary="Get current user")
def me(user: User = Depends(get_current_user)):
    return user
