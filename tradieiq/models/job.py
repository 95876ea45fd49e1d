"""
Job record models.

``Job`` is what the store pushes back through a subscription; ``JobDraft``
is the full record sent on create; ``JobUpdate`` is a partial patch in
which only explicitly set fields travel to the store.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tradieiq.models.status import JobStatus

DEFAULT_VALUE = "$0"

# Fields a client may patch. id, owner_id and created_at are fixed at creation.
UPDATABLE_FIELDS = (
    "client",
    "address",
    "value",
    "status",
    "transcript",
    "summary",
    "tasks",
    "materials",
)


def _require_text(value: str, field_name: str) -> str:
    if not value.strip():
        raise ValueError(f"Invalid {field_name}: cannot be empty")
    return value.strip()


def _blank_status_to_new(value: Any) -> Any:
    if value is None or value == "":
        return JobStatus.NEW
    return value


class Job(BaseModel):
    """A job record as mirrored in the job cache."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    owner_id: str
    client: str = ""
    address: str = ""
    value: str = DEFAULT_VALUE
    status: JobStatus = JobStatus.NEW
    transcript: str = ""
    summary: str = ""
    tasks: list[str] = Field(default_factory=list)
    materials: list[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("status", mode="before")
    @classmethod
    def default_status(cls, value: Any) -> Any:
        return _blank_status_to_new(value)

    @field_validator("value", mode="before")
    @classmethod
    def default_value(cls, value: Any) -> Any:
        if value is None:
            return DEFAULT_VALUE
        return value


class JobDraft(BaseModel):
    """Complete record handed to ``JobStore.create``."""

    model_config = ConfigDict(extra="forbid")

    owner_id: str
    client: str
    address: str
    value: str = DEFAULT_VALUE
    status: JobStatus = JobStatus.NEW
    transcript: str = ""
    summary: str = ""
    tasks: list[str] = Field(default_factory=list)
    materials: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @field_validator("owner_id")
    @classmethod
    def validate_owner_id(cls, value: str) -> str:
        return _require_text(value, "owner_id")

    @field_validator("client")
    @classmethod
    def validate_client(cls, value: str) -> str:
        return _require_text(value, "client")

    @field_validator("address")
    @classmethod
    def validate_address(cls, value: str) -> str:
        return _require_text(value, "address")

    @field_validator("status", mode="before")
    @classmethod
    def default_status(cls, value: Any) -> Any:
        return _blank_status_to_new(value)


class JobUpdate(BaseModel):
    """Partial update. Unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid")

    client: Optional[str] = None
    address: Optional[str] = None
    value: Optional[str] = None
    status: Optional[JobStatus] = None
    transcript: Optional[str] = None
    summary: Optional[str] = None
    tasks: Optional[list[str]] = None
    materials: Optional[list[str]] = None

    @field_validator("client", "address")
    @classmethod
    def validate_required_text(cls, value: Optional[str], info) -> Optional[str]:
        if value is None:
            return None
        return _require_text(value, info.field_name)

    def to_fields(self) -> Dict[str, Any]:
        """Only the fields the caller actually set, with enums as plain strings."""
        fields = self.model_dump(exclude_unset=True, exclude_none=True)
        if "status" in fields:
            fields["status"] = JobStatus(fields["status"]).value
        return fields
