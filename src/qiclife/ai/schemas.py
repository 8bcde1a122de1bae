"""Request schemas for AI endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RecommendationsRequest(BaseModel):
    context: dict[str, Any] = Field(default_factory=dict)
    type: str = "mission"


class ProfileRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    onboarding_data: dict[str, Any] | None = Field(default=None, alias="onboardingData")


class ChatRequest(BaseModel):
    message: str | None = None
    context: Any = None
