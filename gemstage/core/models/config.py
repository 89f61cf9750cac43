"""
GemstageConfig — tool settings loaded from gemstage.yml.

Every key is optional; an absent file means "all defaults".
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class GemstageConfig(BaseModel):
    """Settings applied to every install run."""

    gemfile: str = "Gemfile"            # default manifest name in the project root
    bundle_command: list[str] = Field(default_factory=lambda: ["bundle"])
    timeout: int = 1800                 # seconds
    jobs: int | None = None
    without: list[str] = Field(default_factory=list)
    local: bool = False                 # resolve from locally cached gems only
    frozen: bool = False
    ignore_user_config: bool = True
    env: dict[str, str] = Field(default_factory=dict)
    audit: bool = True

    @field_validator("bundle_command", mode="before")
    @classmethod
    def _split_command(cls, value: object) -> object:
        # "bundle" or "bin/bundle --verbose" are both accepted
        if isinstance(value, str):
            return value.split()
        return value

    @field_validator("without", mode="before")
    @classmethod
    def _split_groups(cls, value: object) -> object:
        if isinstance(value, str):
            return [g for g in value.replace(":", " ").split() if g]
        return value

    @field_validator("timeout")
    @classmethod
    def _positive_timeout(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("timeout must be positive")
        return value
