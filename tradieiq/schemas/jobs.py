"""Pydantic schemas for the job tools."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import field_validator

from tradieiq.models.status import JobStatus, JobTab
from tradieiq.schemas.common import (
    JobIdMixin,
    StrictForbidRequest,
    StrictIgnoreRequest,
    StrictResponse,
)

_STATUS_VALUES = tuple(status.value for status in JobStatus)
_TAB_VALUES = tuple(tab.value for tab in JobTab)


def _validate_status(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if value not in _STATUS_VALUES:
        raise ValueError(
            f"Invalid status: '{value}'. Allowed values: {', '.join(_STATUS_VALUES)}"
        )
    return value


class CreateJobRequest(StrictIgnoreRequest):
    """Request schema for create_job."""

    client: str
    address: str
    value: Optional[str] = None
    status: Optional[str] = None
    transcript: Optional[str] = None
    summary: Optional[str] = None
    tasks: Optional[list[str]] = None
    materials: Optional[list[str]] = None
    open: bool = False

    @field_validator("status")
    @classmethod
    def validate_status(cls, value: Optional[str]) -> Optional[str]:
        return _validate_status(value)


class UpdateJobRequest(JobIdMixin, StrictForbidRequest):
    """Request schema for update_job. Unknown fields are rejected."""

    client: Optional[str] = None
    address: Optional[str] = None
    value: Optional[str] = None
    status: Optional[str] = None
    transcript: Optional[str] = None
    summary: Optional[str] = None
    tasks: Optional[list[str]] = None
    materials: Optional[list[str]] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, value: Optional[str]) -> Optional[str]:
        return _validate_status(value)

    def changes(self) -> Dict[str, Any]:
        """Fields the caller set, without job_id."""
        return self.model_dump(exclude={"job_id"}, exclude_none=True, exclude_unset=True)


class JobIdRequest(JobIdMixin, StrictIgnoreRequest):
    """Request schema for select_job and delete_job."""


class SwitchTabRequest(StrictIgnoreRequest):
    tab: str

    @field_validator("tab")
    @classmethod
    def validate_tab(cls, value: str) -> str:
        if value not in _TAB_VALUES:
            raise ValueError(f"Invalid tab: '{value}'. Allowed values: {', '.join(_TAB_VALUES)}")
        return value


class JobListItem(StrictResponse):
    id: str
    client: str
    address: str
    value: str
    status: str
    status_label: str
    updated: str
    selected: bool = False


class JobAggregatesInfo(StrictResponse):
    total: int
    active_count: int
    total_value: float
    today_count: int
    by_status: Dict[str, int]
