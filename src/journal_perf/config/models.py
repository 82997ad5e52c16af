"""
Configuration Models - Pydantic Models for Type-Safe Config.

All configuration is validated at load time using Pydantic.
"""

from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, Field, model_validator


class CacheSettings(BaseModel):
    """Settings for one named cache store."""

    default_ttl_seconds: float = Field(default=300.0, ge=0)
    max_size: Optional[int] = Field(default=100, ge=1)
    cleanup_interval_seconds: Optional[float] = Field(default=60.0, gt=0)
    log_access: bool = False


def _default_caches() -> Dict[str, CacheSettings]:
    return {
        "default": CacheSettings(),
        "analytics": CacheSettings(default_ttl_seconds=600.0, max_size=50),
        "performance": CacheSettings(default_ttl_seconds=900.0, max_size=30),
    }


class WindowingSettings(BaseModel):
    """Settings for list virtualization."""

    item_extent: float = Field(default=48.0, gt=0)
    overscan: int = Field(default=5, ge=0)


class SchedulingSettings(BaseModel):
    """Settings for debounce, throttle, batching and chunked work."""

    debounce_delay_seconds: float = Field(default=0.3, ge=0)
    debounce_max_wait_seconds: Optional[float] = Field(default=None, ge=0)
    throttle_limit_seconds: float = Field(default=0.016, ge=0)
    batch_delay_seconds: float = Field(default=0.05, ge=0)
    chunk_size: int = Field(default=10, ge=1)

    @model_validator(mode="after")
    def _max_wait_covers_delay(self) -> "SchedulingSettings":
        max_wait = self.debounce_max_wait_seconds
        if max_wait is not None and max_wait < self.debounce_delay_seconds:
            raise ValueError("debounce_max_wait_seconds must be >= debounce_delay_seconds")
        return self


class MonitorSettings(BaseModel):
    """Settings for the performance monitor."""

    enabled: bool = True
    buffer_size: int = Field(default=1000, ge=1)
    slow_threshold_seconds: float = Field(default=0.016, ge=0)


class LoggingSettings(BaseModel):
    """Settings for stdlib and structlog output."""

    level: str = Field(default="INFO", pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    json_output: bool = Field(default=False, alias="json")

    model_config = {"populate_by_name": True}


class PerfEngineConfig(BaseModel):
    """Root configuration object."""

    version: str = "1.0"
    caches: Dict[str, CacheSettings] = Field(default_factory=_default_caches)
    windowing: WindowingSettings = Field(default_factory=WindowingSettings)
    scheduling: SchedulingSettings = Field(default_factory=SchedulingSettings)
    monitoring: MonitorSettings = Field(default_factory=MonitorSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = {"populate_by_name": True}

    def cache(self, name: str = "default") -> CacheSettings:
        """Settings for a named cache, falling back to defaults."""
        return self.caches.get(name) or CacheSettings()
