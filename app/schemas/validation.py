from __future__ import annotations

from typing import Any

from pydantic import BaseModel, field_validator


class ValidationResult(BaseModel):
    """A finding embedded in an assistant reply; status is success, error or warning."""

    status: str = ""
    text: str = ""

    @field_validator("status", "text", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return "" if value is None else str(value)
