"""Tests for settings and logging setup."""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path

import pytest

from billfold.config import Settings
from billfold.log import configure_logging


def test_defaults() -> None:
    settings = Settings.from_env({})
    assert settings.host == "127.0.0.1"
    assert settings.port == 3000
    assert settings.data_dir == Path("data")
    assert settings.debug is False
    assert settings.log_level == "info"
    assert settings.development is True


def test_environment_overrides() -> None:
    settings = Settings.from_env(
        {
            "BILLFOLD_HOST": "0.0.0.0",
            "BILLFOLD_PORT": "8080",
            "BILLFOLD_DEBUG": "true",
            "BILLFOLD_LOG_LEVEL": "DEBUG",
            "DATA_DIR": "/srv/budget",
        }
    )
    assert settings.host == "0.0.0.0"
    assert settings.port == 8080
    assert settings.debug is True
    assert settings.log_level == "debug"
    assert settings.data_dir == Path("/srv/budget")
    assert settings.development is False


def test_bad_port() -> None:
    with pytest.raises(ValueError, match="BILLFOLD_PORT"):
        Settings.from_env({"BILLFOLD_PORT": "eighty"})


def test_settings_are_frozen() -> None:
    settings = Settings()
    with pytest.raises(dataclasses.FrozenInstanceError):
        settings.port = 1  # type: ignore[misc]


def test_configure_logging_installs_one_handler() -> None:
    logger = configure_logging("debug")
    configure_logging("warning")
    ours = [h for h in logger.handlers if getattr(h, "_billfold", False)]
    assert len(ours) == 1
    assert logger.level == logging.WARNING
