"""Runtime configuration read from environment variables.

Values are validated with a Pydantic model so a misconfigured deployment
fails at startup instead of on the first request. Elasticsearch
credentials are only required when the elasticsearch backend is selected.
"""

import logging
import os
from typing import List, Literal, Mapping, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class Settings(BaseModel):
    """Validated configuration.

    Attributes:
        store_backend: ``elasticsearch`` for a real cluster, ``memory`` for
            the in-process store used in tests and local development.
        elastic_url: Cluster URL, e.g. ``http://elasticsearch:9200``.
        elastic_timeout_secs: Per-call deadline for store requests.
        elastic_refresh: Refresh policy applied to writes.
        elastic_max_results: Maximum hits returned by one listing or search.
        startup_timeout_secs: How long startup waits for the store.
        log_level: Level name for the ``catalog`` loggers, upper-cased.
        cors_origins: Origins allowed to call the API from a browser;
            ``*`` reflects any origin. Read from a comma-separated list.
    """

    store_backend: Literal["elasticsearch", "memory"] = "elasticsearch"
    elastic_url: Optional[str] = None
    elastic_username: Optional[str] = None
    elastic_password: Optional[str] = None
    elastic_timeout_secs: float = Field(default=10.0, gt=0)
    elastic_refresh: Literal["true", "false", "wait_for"] = "wait_for"
    elastic_max_results: int = Field(default=1000, ge=1, le=10000)
    startup_timeout_secs: float = Field(default=30.0, ge=0)
    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]
    host: str = "0.0.0.0"
    port: int = 3000

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {v}")
        return level

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, v):
        if isinstance(v, str):
            return [o.strip() for o in v.split(",") if o.strip()]
        return v

    @model_validator(mode="after")
    def _require_credentials(self):
        if self.store_backend == "elasticsearch":
            missing = [
                name.upper()
                for name in ("elastic_url", "elastic_username", "elastic_password")
                if not getattr(self, name)
            ]
            if missing:
                raise ValueError(f"missing required settings: {', '.join(missing)}")
        return self


ENV_VARS = {
    "store_backend": "CATALOG_STORE",
    "elastic_url": "ELASTIC_URL",
    "elastic_username": "ELASTIC_USERNAME",
    "elastic_password": "ELASTIC_PASSWORD",
    "elastic_timeout_secs": "ELASTIC_TIMEOUT_SECS",
    "elastic_refresh": "ELASTIC_REFRESH",
    "elastic_max_results": "ELASTIC_MAX_RESULTS",
    "startup_timeout_secs": "STORE_STARTUP_TIMEOUT_SECS",
    "log_level": "LOG_LEVEL",
    "cors_origins": "CORS_ORIGINS",
    "host": "HOST",
    "port": "PORT",
}


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build ``Settings`` from environment variables.

    Raises:
        pydantic.ValidationError: A variable is missing or malformed.
    """
    env = os.environ if environ is None else environ
    values = {field: env[var] for field, var in ENV_VARS.items() if env.get(var)}
    return Settings.model_validate(values)
