"""Tests for Settings parsing and validators."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from planproof.config import Settings, build_check_options
from planproof.constants import DEFAULT_IGNORES, DEFAULT_MAX_SCAN_DEPTH


class TestDefaults:
    def test_defaults(self) -> None:
        s = Settings()
        assert s.log_level == "WARNING"
        assert s.include_experimental is False
        assert s.allowed_new_paths == []
        assert s.max_scan_depth == DEFAULT_MAX_SCAN_DEPTH
        assert s.skip_directories == list(DEFAULT_IGNORES)
        assert s.log_catches is False
        assert s.catches_file.name == "catches.jsonl"


class TestListParsing:
    def test_comma_separated_string(self) -> None:
        s = Settings(allowed_new_paths="new/**, docs/*.md")  # type: ignore[arg-type]
        assert s.allowed_new_paths == ["new/**", "docs/*.md"]

    def test_json_array_string(self) -> None:
        s = Settings(skip_directories='["vendor", "tmp"]')  # type: ignore[arg-type]
        assert s.skip_directories == ["vendor", "tmp"]

    def test_list_passthrough(self) -> None:
        s = Settings(allowed_new_paths=["a/*"])
        assert s.allowed_new_paths == ["a/*"]

    def test_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PLANPROOF_ALLOWED_NEW_PATHS", "lib/**,scripts/*")
        monkeypatch.setenv("PLANPROOF_INCLUDE_EXPERIMENTAL", "true")
        s = Settings()
        assert s.allowed_new_paths == ["lib/**", "scripts/*"]
        assert s.include_experimental is True


class TestValidation:
    def test_depth_must_be_positive(self) -> None:
        with pytest.raises(ValidationError, match="at least 1"):
            Settings(max_scan_depth=0)

    def test_log_level_is_normalized(self) -> None:
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level(self) -> None:
        with pytest.raises(ValidationError, match="unknown log level"):
            Settings(log_level="chatty")


class TestEnvFile:
    def test_reads_dotenv_in_working_directory(self, tmp_path: Path) -> None:
        (tmp_path / ".env").write_text("PLANPROOF_MAX_SCAN_DEPTH=4\nOTHER=1\n")
        assert Settings().max_scan_depth == 4


class TestBuildCheckOptions:
    def test_settings_fill_scan_options(self) -> None:
        settings = Settings(max_scan_depth=2, skip_directories=["vendor"])
        options = build_check_options(settings)
        assert options.max_scan_depth == 2
        assert options.skip_directories == ["vendor"]
        assert options.schema_path is None

    def test_arguments_extend_settings(self) -> None:
        settings = Settings(allowed_new_paths=["a/*"])
        options = build_check_options(
            settings,
            schema_path=Path("db/schema.prisma"),
            allowed_new_paths=["b/*"],
        )
        assert options.allowed_new_paths == ["a/*", "b/*"]
        assert options.schema_path == Path("db/schema.prisma")

    def test_experimental_from_either_source(self) -> None:
        assert build_check_options(
            Settings(include_experimental=True)
        ).include_experimental
        assert build_check_options(
            Settings(), include_experimental=True
        ).include_experimental
        assert not build_check_options(Settings()).include_experimental
