"""Identity model issued by the auth gateway and observed by the session store."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class Identity(BaseModel):
    """An authenticated user as reported by the auth gateway."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    uid: str
    email: str
    display_name: Optional[str] = None

    @field_validator("uid")
    @classmethod
    def validate_uid(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Invalid uid: cannot be empty")
        return value

    @property
    def label(self) -> str:
        """Name shown in the dashboard header."""
        if self.display_name:
            return self.display_name
        return self.email.split("@")[0]
