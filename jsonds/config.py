"""Runtime settings and logging setup.

Every field can be overridden through a ``JSONDS_*`` environment variable:

  JSONDS_HOST, JSONDS_PORT         listen address
  JSONDS_SEED_COUNT                events backfilled at startup, default 100
  JSONDS_SEED_STEP                 spacing of backfilled events (seconds), default 1200
  JSONDS_GENERATE_PERIOD           seconds between generated events, default 60
  JSONDS_PUSH_INTERVAL             seconds between websocket pushes, default 3
  JSONDS_REQUEST_TIMEOUT           per-request deadline (seconds), default 10
  JSONDS_CORS_ORIGINS              comma-separated allowed origins, default *
  JSONDS_LOG_LEVEL                 default INFO
"""
import logging
import os
from typing import List, Mapping
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "JSONDS_"

_ENV_FIELDS = {
    "HOST": "host",
    "PORT": "port",
    "SEED_COUNT": "seed_count",
    "SEED_STEP": "seed_step_s",
    "GENERATE_PERIOD": "generate_period_s",
    "PUSH_INTERVAL": "push_interval_s",
    "REQUEST_TIMEOUT": "request_timeout_s",
    "CORS_ORIGINS": "cors_origins",
    "LOG_LEVEL": "log_level",
}

class Settings(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(default=8080, ge=0, le=65535)
    seed_count: int = Field(default=100, ge=0)
    seed_step_s: float = Field(default=20 * 60, ge=0.001)
    generate_period_s: float = Field(default=60.0, gt=0)
    push_interval_s: float = Field(default=3.0, gt=0)
    request_timeout_s: float = Field(default=10.0, gt=0)
    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, v):
        if isinstance(v, str):
            return [o.strip() for o in v.split(",") if o.strip()]
        return v

    @field_validator("log_level")
    @classmethod
    def _check_level(cls, v: str) -> str:
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level {v!r}")
        return level

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides) -> "Settings":
        """Build settings from JSONDS_* variables; explicit overrides win."""
        if environ is None:
            environ = os.environ
        values = {
            field: environ[ENV_PREFIX + key]
            for key, field in _ENV_FIELDS.items()
            if ENV_PREFIX + key in environ
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )
