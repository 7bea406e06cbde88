"""Pydantic models for skilo configuration."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class CacheSettings(BaseModel):
    """Settings for the git cache."""

    home: Optional[str] = Field(
        default=None,
        description="Skilo home directory; the git cache lives in its git/ subdirectory",
    )
    cache_dir: Optional[str] = Field(
        default=None,
        description="Git cache directory (takes precedence over home)",
    )
    max_age_days: int = Field(
        default=30,
        ge=0,
        description="Checkouts older than this many days are removed by 'cache clean'",
    )
    offline: bool = Field(
        default=False, description="Never contact remotes when set"
    )


class SkiloConfig(BaseModel):
    """Root configuration for skilo."""

    version: str = Field(description="Config schema version")
    cache: CacheSettings = Field(default_factory=CacheSettings)

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        """Validate version format."""
        if not v.startswith("1."):
            raise ValueError(
                f"Unsupported config version: {v}. Only version 1.x is supported."
            )
        return v
