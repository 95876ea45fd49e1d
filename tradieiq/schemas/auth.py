"""Pydantic schemas for the session tools."""

from __future__ import annotations

from typing import Optional

from tradieiq.schemas.common import StrictIgnoreRequest, StrictResponse


class CredentialsRequest(StrictIgnoreRequest):
    """Request schema for sign_in and sign_up.

    Emptiness is checked by the controller so the user sees the form message.
    """

    email: str
    password: str


class UserInfo(StrictResponse):
    name: str
    email: str


class SessionInfo(StrictResponse):
    """Session snapshot attached to every tool response."""

    state: str
    user: Optional[UserInfo] = None
    view: str
    selected_job_id: Optional[str] = None
    tab: str
    is_recording: bool = False
    busy: list[str] = []
