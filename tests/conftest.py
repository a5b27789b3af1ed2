"""Pytest configuration and fixtures for launchkit tests."""

import logging
import os
import tempfile

import pytest

# Route config and logs away from the user's home before launchkit imports
_TEST_ROOT = tempfile.mkdtemp(prefix="launchkit-tests-")
os.environ.setdefault("LAUNCHKIT_LOG_DIR", os.path.join(_TEST_ROOT, "logs"))
os.environ.setdefault(
    "LAUNCHKIT_CONFIG_DIR", os.path.join(_TEST_ROOT, "config")
)


@pytest.fixture(autouse=True)
def enable_log_propagation():
    """Enable log propagation for all loggers during tests.

    This allows pytest's caplog fixture to capture logs from all loggers,
    even the ``launchkit`` root which is created with propagate=False.
    """
    original_propagation = {}
    for name in list(logging.Logger.manager.loggerDict.keys()):
        if name.startswith("launchkit"):
            logger = logging.getLogger(name)
            original_propagation[name] = logger.propagate
            logger.propagate = True

    yield

    for name, propagate_value in original_propagation.items():
        logger = logging.getLogger(name)
        logger.propagate = propagate_value


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    """Point LAUNCHKIT_CONFIG_DIR at a fresh temporary directory."""
    directory = tmp_path / "config"
    monkeypatch.setenv("LAUNCHKIT_CONFIG_DIR", str(directory))
    return directory
