"""Environment-based configuration."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Annotated, Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode

from planproof.analysis.schemas import CheckOptions
from planproof.constants import DEFAULT_IGNORES, DEFAULT_MAX_SCAN_DEPTH

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Reads from .env file and PLANPROOF_* environment variables."""

    # Logging
    log_level: str = "WARNING"

    # Checkers
    include_experimental: bool = False
    allowed_new_paths: Annotated[list[str], NoDecode] = []

    # File tree
    max_scan_depth: int = DEFAULT_MAX_SCAN_DEPTH
    skip_directories: Annotated[list[str], NoDecode] = list(
        DEFAULT_IGNORES
    )

    # Catch log
    log_catches: bool = False
    catches_file: Path = Path.home() / ".planproof" / "catches.jsonl"

    @field_validator("allowed_new_paths", "skip_directories", mode="before")
    @classmethod
    def _parse_list(cls, v: Any) -> Any:
        """Accept comma-separated string or JSON array."""
        if isinstance(v, str):
            stripped = v.strip()
            if stripped.startswith("["):
                return json.loads(stripped)
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    @field_validator("max_scan_depth")
    @classmethod
    def _validate_depth(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_scan_depth must be at least 1")
        return v

    @field_validator("log_level")
    @classmethod
    def _validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level: {v}")
        return level

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "PLANPROOF_",
        "extra": "ignore",
    }


def build_check_options(
    settings: Settings,
    *,
    schema_path: Path | None = None,
    allowed_new_paths: Sequence[str] = (),
    include_experimental: bool = False,
) -> CheckOptions:
    """Per-call arguments layered over settings."""
    return CheckOptions(
        schema_path=schema_path,
        allowed_new_paths=[*settings.allowed_new_paths, *allowed_new_paths],
        include_experimental=include_experimental or settings.include_experimental,
        max_scan_depth=settings.max_scan_depth,
        skip_directories=settings.skip_directories,
    )
