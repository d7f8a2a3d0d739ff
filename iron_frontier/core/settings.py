from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ContentSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # Empty means the content bundled with the package.
    content_dir: str = ""
    fail_on_integrity_warnings: bool = False


class RollSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    base_seed: int = 1337
    seeded: bool = True
    default_player_level: int = Field(default=1, ge=1, le=10)


class LoggingSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    logs_dir: str = "logs"
    keep_archives: int = Field(default=5, ge=0, le=50)


class ToolSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: ContentSettings = Field(default_factory=ContentSettings)
    rolls: RollSettings = Field(default_factory=RollSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    def as_dict(self) -> dict[str, Any]:
        return json.loads(self.model_dump_json())


def merge_settings(payload: dict[str, Any] | None) -> dict[str, Any]:
    if not isinstance(payload, dict):
        payload = {}
    return ToolSettings.model_validate(payload).as_dict()


def default_settings() -> dict[str, Any]:
    return ToolSettings().as_dict()
