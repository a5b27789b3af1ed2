"""Public logging API: setup, lookup, flushing and test reset."""

import atexit
import contextlib
import logging
import time
from collections.abc import Iterator
from logging.handlers import RotatingFileHandler
from pathlib import Path

from launchkit.logger.config import load_log_settings
from launchkit.logger.handlers import ROOT_LOGGER_NAME, setup_root_logger
from launchkit.logger.state import get_state

FLUSH_TIMEOUT_SECONDS = 5.0


def flush_all_handlers() -> None:
    """Drain the log queue and flush every handler.

    Used before reading the log file in tests and at interpreter exit.
    """
    state = get_state()
    if state.queue_listener is None or state.log_queue is None:
        return

    # QueueListener does not call task_done(), so poll until empty
    deadline = time.monotonic() + FLUSH_TIMEOUT_SECONDS
    while not state.log_queue.empty() and time.monotonic() < deadline:
        time.sleep(0.01)
    time.sleep(0.1)

    for handler in state.queue_listener.handlers:
        with contextlib.suppress(OSError, ValueError):
            handler.flush()


def _cleanup_logging() -> None:
    """Stop the listener thread at interpreter exit."""
    state = get_state()
    if state.queue_listener is not None:
        flush_all_handlers()
        state.queue_listener.stop()
        state.queue_listener = None


atexit.register(_cleanup_logging)


def setup_logging(
    name: str = ROOT_LOGGER_NAME,
    console_level: str | None = None,
    file_level: str | None = None,
    log_file: Path | None = None,
    enable_file_logging: bool = True,  # noqa: FBT001, FBT002
) -> logging.Logger:
    """Initialize the root logger once and return the named logger.

    Child loggers (``launchkit.core.transfer`` and so on) carry no
    handlers of their own and propagate to the root.

    Args:
        name: Logger name, usually ``__name__``
        console_level: Console level name (bootstrap default if None)
        file_level: File level name (bootstrap default if None)
        log_file: Log file path (bootstrap default if None)
        enable_file_logging: Whether to attach the rotating file handler

    Returns:
        Logger instance

    Raises:
        ConfigurationError: If file logging setup fails

    """
    state = get_state()
    with state.lock:
        if not state.root_initialized:
            if console_level is None or file_level is None or log_file is None:
                cfg_console, cfg_file, cfg_path = load_log_settings()
                console_level = console_level or cfg_console
                file_level = file_level or cfg_file
                log_file = log_file or cfg_path

            setup_root_logger(
                state,
                console_level,
                file_level,
                log_file,
                enable_file_logging,
            )

    return logging.getLogger(name)


def get_logger(
    name: str = ROOT_LOGGER_NAME,
    enable_file_logging: bool = True,  # noqa: FBT001, FBT002
) -> logging.Logger:
    """Get a module logger, initializing the root on first use.

    Example:
        >>> from launchkit.logger import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("Installing %s %s", app_id, version)

    """
    return setup_logging(name=name, enable_file_logging=enable_file_logging)


def clear_logger_state() -> None:
    """Tear down logging so the next call starts fresh. Tests only."""
    state = get_state()
    with state.lock:
        if state.queue_listener is not None:
            flush_all_handlers()
            state.queue_listener.stop()
            state.queue_listener = None

        state.log_queue = None
        state.root_initialized = False
        state.config_applied = False

        for logger_name in list(logging.Logger.manager.loggerDict.keys()):
            if logger_name.startswith(ROOT_LOGGER_NAME):
                log_instance = logging.getLogger(logger_name)
                for handler in log_instance.handlers[:]:
                    handler.close()
                    log_instance.removeHandler(handler)


@contextlib.contextmanager
def temporary_console_level(level: str) -> Iterator[None]:
    """Temporarily change the console handler level (``--verbose``).

    The file handler keeps its level; the previous console level is
    restored on exit.
    """
    state = get_state()
    previous: list[tuple[logging.Handler, int]] = []
    if state.queue_listener is not None:
        for handler in state.queue_listener.handlers:
            if isinstance(handler, logging.StreamHandler) and not isinstance(
                handler, RotatingFileHandler
            ):
                previous.append((handler, handler.level))
                handler.setLevel(getattr(logging, level.upper(), logging.INFO))
    try:
        yield
    finally:
        for handler, original in previous:
            handler.setLevel(original)
