"""Pytest configuration for LSEP tests"""
import logging
import os

import pytest


def _debug_enabled():
    return os.getenv("LSEP_DEBUG", "").lower() in ("1", "true", "yes")


def pytest_configure(config):
    """Enable debug logging if LSEP_DEBUG is set"""
    if _debug_enabled():
        # Enable log output to console during tests
        config.option.log_cli = True
        config.option.log_cli_level = "DEBUG"


@pytest.fixture(scope="session", autouse=True)
def setup_logging():
    """Setup test logging"""
    test_logger = logging.getLogger("test")
    level = logging.DEBUG if _debug_enabled() else logging.INFO
    test_logger.setLevel(level)

    # Also configure library logger level
    logging.getLogger("lsep").setLevel(level)

    if _debug_enabled():
        test_logger.info("Debug logging enabled (LSEP_DEBUG=1)")

    yield test_logger
