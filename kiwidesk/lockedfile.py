"""Files with advisory read/write locks shared between processes."""

from __future__ import annotations

import enum
import logging
import os
from typing import IO, Any

import portalocker

_log = logging.getLogger(__name__)


class LockMode(enum.IntEnum):
    """Kind of lock held on a file."""

    NO_LOCK = 0
    READ_LOCK = 1
    WRITE_LOCK = 2


class LockedFileError(Exception):
    """Raised when a locked file is misused or cannot be opened."""


def _open_flags(mode: str) -> int:
    """Translate a Python file mode into ``os.open`` flags, never truncating."""
    if "w" in mode:
        raise LockedFileError("truncate mode not allowed")
    base = mode.replace("b", "").replace("t", "")
    table = {
        "r": os.O_RDONLY,
        "r+": os.O_RDWR | os.O_CREAT,
        "a": os.O_WRONLY | os.O_APPEND | os.O_CREAT,
        "a+": os.O_RDWR | os.O_APPEND | os.O_CREAT,
    }
    try:
        flags = table[base]
    except KeyError:
        raise ValueError(f"unsupported file mode: {mode!r}") from None
    return flags | getattr(os, "O_BINARY", 0)


class LockedFile:
    """A file that can hold an advisory read or write lock.

    Any number of holders may share a read lock; exactly one may hold a
    write lock, and read and write locks exclude each other.  Locks are
    released when the file is closed.
    """

    def __init__(self, name: str | os.PathLike[str]) -> None:
        self._name = os.fspath(name)
        self._file: IO[Any] | None = None
        self._mode = LockMode.NO_LOCK

    @property
    def name(self) -> str:
        """Path of the file."""
        return self._name

    @property
    def file(self) -> IO[Any]:
        """The underlying open file object."""
        if self._file is None:
            raise LockedFileError("file is not opened")
        return self._file

    def open(self, mode: str = "r+") -> None:
        """Open the file; modes that truncate are refused.

        ``"r+"`` and the append modes create the file when it is missing.
        """
        if self._file is not None:
            raise LockedFileError("file is already open")
        flags = _open_flags(mode)
        try:
            fd = os.open(self._name, flags, 0o666)
        except OSError as exc:
            raise LockedFileError(f"cannot open {self._name}: {exc}") from exc
        try:
            self._file = os.fdopen(fd, mode)
        except Exception:
            os.close(fd)
            raise

    def close(self) -> None:
        """Release any lock and close the file."""
        if self._file is None:
            return
        try:
            self.unlock()
        finally:
            self._file.close()
            self._file = None
            self._mode = LockMode.NO_LOCK

    def is_open(self) -> bool:
        """Whether the file is currently open."""
        return self._file is not None

    def lock(self, mode: LockMode, block: bool = True) -> bool:
        """Obtain a lock of ``mode``.

        Returns True if the file is locked by this object afterwards.
        With ``block`` false the call gives up at once when another
        holder conflicts.  A held lock of another kind is released first.
        """
        if self._file is None:
            raise LockedFileError("lock(): file is not opened")
        mode = LockMode(mode)
        if mode is LockMode.NO_LOCK:
            return self.unlock()
        if mode is self._mode:
            return True
        if self._mode is not LockMode.NO_LOCK:
            self.unlock()

        flags = (
            portalocker.LockFlags.SHARED
            if mode is LockMode.READ_LOCK
            else portalocker.LockFlags.EXCLUSIVE
        )
        if not block:
            flags |= portalocker.LockFlags.NON_BLOCKING
        try:
            portalocker.lock(self._file, flags)
        except portalocker.exceptions.LockException as exc:
            if not isinstance(exc, portalocker.exceptions.AlreadyLocked) and block:
                _log.warning("lock(): %s", exc)
            return False
        self._mode = mode
        return True

    def unlock(self) -> bool:
        """Release the held lock, if any; returns True once unlocked."""
        if self._file is None:
            raise LockedFileError("unlock(): file is not opened")
        if self._mode is LockMode.NO_LOCK:
            return True
        try:
            portalocker.unlock(self._file)
        except portalocker.exceptions.LockException as exc:
            _log.warning("unlock(): %s", exc)
            return False
        self._mode = LockMode.NO_LOCK
        return True

    def is_locked(self) -> bool:
        """Whether this object holds a read or write lock."""
        return self._mode is not LockMode.NO_LOCK

    def lock_mode(self) -> LockMode:
        """The kind of lock currently held."""
        return self._mode

    def __enter__(self) -> LockedFile:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __del__(self) -> None:
        try:
            self.close()
        except Exception:
            pass