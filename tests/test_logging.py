"""Tests for roost.logging."""

import logging

import pytest

from roost.logging import configure_logging


@pytest.fixture(autouse=True)
def _restore_roost_logger():
    logger = logging.getLogger("roost")
    handlers = list(logger.handlers)
    level = logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


class TestConfigureLogging:
    def test_sets_level_by_name(self) -> None:
        logger = configure_logging("debug")
        assert logger.name == "roost"
        assert logger.level == logging.DEBUG

    def test_accepts_numeric_level(self) -> None:
        assert configure_logging(logging.WARNING).level == logging.WARNING

    def test_installs_one_handler(self) -> None:
        configure_logging("info")
        configure_logging("info")
        ours = [h for h in logging.getLogger("roost").handlers if getattr(h, "_roost", False)]
        assert len(ours) == 1

    def test_unknown_level_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown log level"):
            configure_logging("chatty")
