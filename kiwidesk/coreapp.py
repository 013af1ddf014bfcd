"""Single-instance application without a user interface."""

from __future__ import annotations

import threading
from collections.abc import Callable

from .localpeer import LocalPeer


class SingleCoreApplication:
    """Detects and talks to a running instance of the same application.

    Two processes with the same id are instances of the same application.
    An empty id stands for the path of the running program.
    """

    def __init__(self, app_id: str = "") -> None:
        self._listeners: list[Callable[[str], None]] = []
        self._listeners_lock = threading.Lock()
        self._peer = LocalPeer(app_id, self._dispatch)

    def _dispatch(self, message: str) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for callback in listeners:
            callback(message)

    def is_running(self) -> bool:
        """Whether another instance of this application is running."""
        return self._peer.is_client()

    def send_message(self, message: str, timeout: int = 5000) -> bool:
        """Send ``message`` to the running instance; True once it was processed.

        ``timeout`` is in milliseconds.
        """
        return self._peer.send_message(message, timeout)

    def id(self) -> str:
        """The application identifier."""
        return self._peer.application_id()

    def add_message_listener(self, callback: Callable[[str], None]) -> None:
        """Call ``callback`` with every message received from other instances."""
        with self._listeners_lock:
            self._listeners.append(callback)

    def close(self) -> None:
        """Stop being the running instance."""
        self._peer.close()

    def __enter__(self) -> SingleCoreApplication:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()