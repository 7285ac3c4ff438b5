"""
Runtime settings for the advisor server.

Load order (each layer overrides the previous):
  1. Field defaults below
  2. ``.env`` in the working directory (optional)
  3. ``ADVISOR_*`` environment variables (``PORT`` is honoured as a fallback)

Entry point: ``load_settings() -> AppSettings``. The app factory and the serve
script take an ``AppSettings`` instance instead of reading the environment.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

from advisor.core.catalog.catalog_store import DEFAULT_CATALOG_PATH, DEFAULT_SEARCH_LIMIT
from advisor.core.portfolio.portfolio_store import DEFAULT_PORTFOLIO_PATH

_PROJECT_ROOT = Path(__file__).resolve().parents[2]

_ENV_FIELDS = {
    "ADVISOR_CATALOG_PATH": "catalog_path",
    "ADVISOR_PORTFOLIO_PATH": "portfolio_path",
    "ADVISOR_STATIC_DIR": "static_dir",
    "ADVISOR_HOST": "host",
    "ADVISOR_PORT": "port",
    "ADVISOR_MAX_BODY_BYTES": "max_body_bytes",
    "ADVISOR_SEARCH_LIMIT": "search_limit",
    "ADVISOR_LOG_LEVEL": "log_level",
    "ADVISOR_LOG_JSON": "log_json",
}


class AppSettings(BaseModel):
    """Complete server configuration."""

    model_config = ConfigDict(frozen=True)

    catalog_path: str = DEFAULT_CATALOG_PATH
    portfolio_path: str = DEFAULT_PORTFOLIO_PATH
    static_dir: str = str(_PROJECT_ROOT / "public")
    host: str = "0.0.0.0"
    port: int = 3000
    max_body_bytes: int = 64 * 1024
    search_limit: int = DEFAULT_SEARCH_LIMIT
    log_level: str = "INFO"
    log_json: bool = False

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not 0 < v < 65536:
            raise ValueError(f"port must be in 1..65535, got {v}.")
        return v

    @field_validator("max_body_bytes", "search_limit")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"must be positive, got {v}.")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


def load_settings(dotenv_path: Optional[Path] = None, **overrides: Any) -> AppSettings:
    """Build ``AppSettings`` from ``.env``, the environment and explicit overrides.

    Args:
        dotenv_path: ``.env`` file to read. Defaults to ``./.env``; a missing
            file is skipped.
        **overrides: Field values that win over the environment (e.g. CLI
            flags). ``None`` values are ignored.

    Raises:
        pydantic.ValidationError: If a value fails validation.
    """
    load_dotenv(dotenv_path=dotenv_path or Path.cwd() / ".env", override=False)

    raw: dict[str, Any] = {}
    if port := os.environ.get("PORT"):
        raw["port"] = port
    for env_name, field in _ENV_FIELDS.items():
        if (value := os.environ.get(env_name)) is not None and value != "":
            raw[field] = value

    if "log_json" in raw:
        raw["log_json"] = str(raw["log_json"]).strip().lower() in ("1", "true", "yes", "on")

    raw.update({key: value for key, value in overrides.items() if value is not None})
    return AppSettings(**raw)
