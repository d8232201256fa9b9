# -*- coding: utf-8 -*-
"""Auth — session lookup + FastAPI helpers."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from ..records.storage import LocalRecordStore
from .models import User


def get_store(request: Request) -> LocalRecordStore:
    return request.app.state.store


def get_current_user_from_request(request: Request) -> User:
    # If middleware already authenticated, reuse it.
    user = getattr(request.state, "user", None)
    if user:
        return user

    user = get_store(request).get_session()
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")

    request.state.user = user
    return user


def get_current_user(user: User = Depends(get_current_user_from_request)) -> User:
    return user
