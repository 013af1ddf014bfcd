"""State behind a book view and the top tool bar: zoom, history buttons, window dragging."""

from __future__ import annotations

import enum
from urllib.parse import unquote, urlsplit

MIN_ZOOM = 0.25
MAX_ZOOM = 5.0
ZOOM_STEP = 0.1
LEFT_BUTTON = "left"

Point = tuple[int, int]


class WebAction(enum.Enum):
    """Page actions whose availability the tool bar follows."""

    BACK = "back"
    FORWARD = "forward"
    RELOAD = "reload"
    STOP = "stop"


def clamp_zoom(factor: float) -> float:
    """Keep a zoom factor within the allowed range."""
    return max(min(factor, MAX_ZOOM), MIN_ZOOM)


def zoom_in(factor: float) -> float:
    """The zoom factor one step larger than ``factor``."""
    return clamp_zoom(factor + ZOOM_STEP)


def zoom_out(factor: float) -> float:
    """The zoom factor one step smaller than ``factor``."""
    return clamp_zoom(factor - ZOOM_STEP)


def hovered_link_text(url: str) -> str | None:
    """Tool tip text for a hovered link, or None when the tool tip is hidden.

    Links inside books show only their path.
    """
    if not url:
        return None
    if url.startswith("zim://"):
        return unquote(urlsplit(url).path)
    return url


class ZoomStore:
    """Zoom factors remembered per book, with a default for the others."""

    def __init__(self, default: float = 1.0) -> None:
        self.default = default
        self._factors: dict[str, float] = {}

    def _stored(self, zim_id: str) -> float | None:
        return self._factors.get(zim_id)

    def factor_for(self, zim_id: str) -> float:
        """The zoom factor of a book, or the default when none is stored."""
        stored = self._stored(zim_id)
        return self.default if stored is None else stored

    def set_factor(self, zim_id: str, factor: float) -> None:
        """Remember the zoom factor of a book."""
        self._factors[zim_id] = factor

    def reset(self, zim_id: str) -> None:
        """Forget the zoom factor of a book."""
        self._factors.pop(zim_id, None)


class ZimView:
    """A view on one book, with its zoom factor and find-in-page bar."""

    def __init__(self, zim_id: str, store: ZoomStore) -> None:
        self.zim_id = zim_id
        self._store = store
        self.zoom_factor = store.factor_for(zim_id)
        self.find_bar_visible = False
        self.find_bar_focused = False

    def _apply(self, factor: float) -> None:
        self.zoom_factor = factor
        self._store.set_factor(self.zim_id, factor)

    def zoom_in(self) -> float:
        """Zoom in one step and remember the factor for the book."""
        self._apply(zoom_in(self.zoom_factor))
        return self.zoom_factor

    def zoom_out(self) -> float:
        """Zoom out one step and remember the factor for the book."""
        self._apply(zoom_out(self.zoom_factor))
        return self.zoom_factor

    def zoom_reset(self) -> float:
        """Return to the default zoom and forget the book's own factor."""
        self.zoom_factor = self._store.default
        self._store.reset(self.zim_id)
        return self.zoom_factor

    def on_default_zoom_changed(self) -> None:
        """Follow a new default zoom unless the book has a factor of its own."""
        if not self._store._stored(self.zim_id):
            self.zoom_factor = self._store.default

    def open_find_in_page_bar(self) -> None:
        """Show the find-in-page bar and focus its entry."""
        self.find_bar_visible = True
        self.find_bar_focused = True


class HistoryButtons:
    """Enabled state of the back and forward buttons."""

    def __init__(self) -> None:
        self.back_enabled = True
        self.forward_enabled = True

    def handle_web_action_enabled_changed(self, action: WebAction, enabled: bool) -> None:
        """Follow a change in a page action's availability."""
        if action is WebAction.BACK:
            self.back_enabled = enabled
        elif action is WebAction.FORWARD:
            self.forward_enabled = enabled


class WindowDragger:
    """Moves a window when its tool bar is dragged with the left button."""

    def __init__(self) -> None:
        self._cursor: Point | None = None
        self._timestamp = 0

    def press(self, button: str, global_pos: Point, frame_offset: Point, timestamp: int) -> bool:
        """Start a drag; ``frame_offset`` is the tool bar's offset in the window frame.

        Returns whether the press was taken.
        """
        if button != LEFT_BUTTON:
            return False
        self._cursor = (global_pos[0] + frame_offset[0], global_pos[1] + frame_offset[1])
        self._timestamp = timestamp
        return True

    def move(self, global_pos: Point, timestamp: int) -> Point | None:
        """New window position for a cursor move, or None when it is ignored."""
        if self._cursor is None or timestamp <= self._timestamp:
            return None
        self._timestamp = timestamp
        return (global_pos[0] - self._cursor[0], global_pos[1] - self._cursor[1])