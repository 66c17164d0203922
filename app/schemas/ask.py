from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.validation import ValidationResult


class AskResponse(BaseModel):
    reply: str
    results: list[ValidationResult] = Field(default_factory=list)
    thread_id: str = Field(alias="threadId")

    model_config = ConfigDict(populate_by_name=True)


class AskErrorResponse(BaseModel):
    reply: str
    results: list[ValidationResult] = Field(default_factory=list)
