from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.validation import ValidationResult


class TranscriptMessage(BaseModel):
    role: str = ""
    content: str = ""

    @field_validator("role", "content", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        # web client payloads may carry null or numeric content
        return "" if value is None else str(value)


class ExportRequest(BaseModel):
    messages: list[TranscriptMessage] = Field(default_factory=list)
    analysis_results: list[ValidationResult] = Field(
        default_factory=list, alias="analysisResults"
    )
    role: str = "Investor"
    language: str = "EN"

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("messages", "analysis_results", mode="before")
    @classmethod
    def _null_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("role", mode="before")
    @classmethod
    def _default_role(cls, value: Any) -> Any:
        return "Investor" if value is None else value

    @field_validator("language", mode="before")
    @classmethod
    def _default_language(cls, value: Any) -> Any:
        return "EN" if value is None else value


class ExportResponse(BaseModel):
    summary: str
