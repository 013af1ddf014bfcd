"""Single-instance application with a window to raise on new messages."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from .localpeer import LocalPeer


@runtime_checkable
class ActivationWindow(Protocol):
    """A window that can be brought to the user's attention."""

    def restore(self) -> None:
        """Leave the minimized state, keeping any other window state."""

    def raise_(self) -> None:
        """Put the window on top of its siblings."""

    def activate(self) -> None:
        """Give the window keyboard focus."""


class SingleApplication:
    """Detects and talks to a running instance of the same application.

    Two processes with the same id are instances of the same application;
    an empty id stands for the path of the running program.  A window set
    with :meth:`set_activation_window` is activated when a message arrives,
    just before the message listeners are called.
    """

    def __init__(self, app_id: str = "") -> None:
        self._listeners: list[Callable[[str], None]] = []
        self._lock = threading.Lock()
        self._window: ActivationWindow | None = None
        self._activate_on_message = False
        self._peer = LocalPeer(app_id, self._dispatch)

    def _dispatch(self, message: str) -> None:
        with self._lock:
            activate = self._activate_on_message
            listeners = list(self._listeners)
        if activate:
            self.activate_window()
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
        with self._lock:
            self._listeners.append(callback)

    def set_activation_window(
        self, window: ActivationWindow | None, activate_on_message: bool = True
    ) -> None:
        """Set the window that :meth:`activate_window` brings forward.

        With ``activate_on_message`` the window is activated every time a
        message is received.
        """
        with self._lock:
            self._window = window
            self._activate_on_message = activate_on_message

    def activation_window(self) -> ActivationWindow | None:
        """The activation window, or None if none has been set."""
        with self._lock:
            return self._window

    def activate_window(self) -> None:
        """Restore, raise and activate the activation window, if there is one."""
        window = self.activation_window()
        if window is None:
            return
        window.restore()
        window.raise_()
        window.activate()

    def initialize(self) -> None:
        """Check for a running instance, claiming the role when there is none."""
        self.is_running()

    def close(self) -> None:
        """Stop being the running instance."""
        self._peer.close()

    def __enter__(self) -> SingleApplication:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()