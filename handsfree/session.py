"""
Session state shared with the rest of the application for passive display.
"""
import logging
import time
from collections import deque
from dataclasses import asdict, dataclass
from typing import Callable, Deque, Dict, List, Optional

from .types import Notification

logger = logging.getLogger(__name__)


@dataclass
class SessionSnapshot:
    """Immutable view of the session flags."""
    is_listening: bool = False
    last_command: Optional[str] = None
    last_error: Optional[str] = None


Listener = Callable[[SessionSnapshot], None]


class SessionState:
    """
    Observable store for the listening flag, last command and last error.

    Written only by the adapters and the enable/disable operations; read by
    indicators elsewhere. Components receive it by reference.
    """

    def __init__(self):
        self._state = SessionSnapshot()
        self._listeners: List[Listener] = []

    @property
    def is_listening(self) -> bool:
        return self._state.is_listening

    @property
    def last_command(self) -> Optional[str]:
        return self._state.last_command

    @property
    def last_error(self) -> Optional[str]:
        return self._state.last_error

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(**asdict(self._state))

    def to_dict(self) -> Dict[str, object]:
        return asdict(self._state)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def start_listening(self) -> None:
        self._update(is_listening=True, last_error=None, last_command=None)

    def stop_listening(self) -> None:
        self._update(is_listening=False, last_command=None)

    def set_last_command(self, command: str) -> None:
        self._update(last_command=command)

    def set_error(self, error: str) -> None:
        self._update(last_error=error, is_listening=False)

    def report_error(self, error: str) -> None:
        """Record an error from a pipeline that does not own the listening flag."""
        self._update(last_error=error)

    def _update(self, **changes) -> None:
        for name, value in changes.items():
            setattr(self._state, name, value)
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Session listener failed")


class NotificationLog:
    """Notifier that logs outcomes and keeps the most recent ones."""

    def __init__(self, maxlen: int = 50):
        self.history: Deque[Notification] = deque(maxlen=maxlen)

    def success(self, message: str) -> None:
        logger.info(f"✅ {message}")
        self.history.append(Notification("success", message, time.time()))

    def error(self, message: str) -> None:
        logger.info(f"❌ {message}")
        self.history.append(Notification("error", message, time.time()))

    def recent(self, limit: int = 20) -> List[Notification]:
        return list(self.history)[-limit:]
