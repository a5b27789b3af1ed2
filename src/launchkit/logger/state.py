"""Process-wide logger state.

Holds the queue and listener that back the ``launchkit`` root logger so
initialization happens once per process.
"""

import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import queue
    from logging.handlers import QueueListener


class LoggerState:
    """Mutable container for the root logger's runtime objects.

    Attributes:
        lock: Guards root logger initialization
        root_initialized: Whether handlers are attached
        config_applied: Whether settings-file levels were applied
        queue_listener: Thread draining the log queue into real handlers
        log_queue: Queue shared by every launchkit logger

    """

    def __init__(self) -> None:
        """Create an uninitialized state."""
        self.lock = threading.Lock()
        self.root_initialized = False
        self.config_applied = False
        self.queue_listener: QueueListener | None = None
        self.log_queue: queue.Queue | None = None


_state = LoggerState()


def get_state() -> LoggerState:
    """Return the process-wide logger state."""
    return _state
