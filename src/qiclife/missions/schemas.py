"""Request schemas for mission endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _MissionRef(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    mission_id: str = Field(alias="missionId", min_length=1)


class StartMissionRequest(_MissionRef):
    pass


class JoinMissionRequest(_MissionRef):
    pass


class CompleteMissionRequest(_MissionRef):
    completion_data: dict[str, Any] = Field(default_factory=dict, alias="completionData")
