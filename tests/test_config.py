"""Tests for settings validation."""

import pytest
from pydantic import ValidationError

from config import Settings


class TestSettings:
    """Settings reject values the CLI cannot use."""

    def test_log_level_is_case_insensitive(self):
        assert Settings(log_level=" info ").log_level == "INFO"

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValidationError):
            Settings(log_level="loud")

    def test_log_level_from_environment(self, monkeypatch):
        monkeypatch.setenv("PROJECT_LENS_LOG_LEVEL", "debug")
        assert Settings().log_level == "DEBUG"

    @pytest.mark.parametrize("limit", [0, 101])
    def test_output_limit_bounded_by_ceiling(self, limit):
        with pytest.raises(ValidationError):
            Settings(max_output_limit=limit)
