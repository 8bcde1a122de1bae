"""Request schemas for profile endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ProfileUpdateRequest(BaseModel):
    profile_json: dict[str, Any] = Field(default_factory=dict)


class PreferencesUpdateRequest(BaseModel):
    preferences: dict[str, Any]


class SettingsUpdateRequest(BaseModel):
    settings: dict[str, Any]


class IntegrationsUpdateRequest(BaseModel):
    integrations: list[str]
