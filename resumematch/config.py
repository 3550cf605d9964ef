from __future__ import annotations
import os
from typing import Optional
from pydantic import BaseModel, Field

from .llm_provider import normalize_provider


def _env_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return float(raw)


class Settings(BaseModel):
    """Runtime knobs, read from the environment (``.env`` is loaded by the CLI)."""

    provider: str = "auto"
    temperature: float = 0.2
    stage_timeout: Optional[float] = Field(default=None, gt=0)
    max_workers: int = Field(default=4, ge=1)

    @classmethod
    def from_env(cls) -> "Settings":
        values = {"provider": normalize_provider(os.getenv("RESUMEMATCH_PROVIDER"))}
        temperature = _env_float("RESUMEMATCH_TEMPERATURE")
        if temperature is not None:
            values["temperature"] = temperature
        timeout = _env_float("RESUMEMATCH_STAGE_TIMEOUT")
        if timeout is not None:
            values["stage_timeout"] = timeout
        workers = os.getenv("RESUMEMATCH_MAX_WORKERS")
        if workers and workers.strip():
            values["max_workers"] = int(workers)
        return cls(**values)
