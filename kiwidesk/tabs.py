"""Tab bar model: the library tab, book and settings tabs, and the "+" button."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from urllib.parse import unquote, urlsplit

LIBRARY_TAB_SIZE = (40, 40)
CONTENT_TAB_SIZE = (205, 40)


class TabKind(enum.Enum):
    """What a tab shows."""

    LIBRARY = "library"
    ZIM = "zim"
    SETTINGS = "settings"
    NEW_TAB = "new-tab"


@dataclass(eq=False)
class Tab:
    """One tab of the bar; tabs compare by identity."""

    kind: TabKind
    zim_id: str = ""
    title: str = ""
    back_enabled: bool = False
    forward_enabled: bool = False


def tab_title_from_url(title: str) -> str:
    """Text shown for a tab: for ``zim://`` URLs only the decoded path."""
    if title.startswith("zim://"):
        return unquote(urlsplit(title).path)
    return title


class TabBarModel:
    """Order and selection of tabs.

    The library tab always comes first and the "+" (new tab) button,
    itself kept as a tab, always comes last; neither can be closed or
    moved, and the "+" button is never selected.
    """

    def __init__(self) -> None:
        self._tabs: list[Tab] = [Tab(TabKind.LIBRARY), Tab(TabKind.NEW_TAB)]
        self._current = 0

    @property
    def tabs(self) -> tuple[Tab, ...]:
        """All tabs in order, the "+" button included."""
        return tuple(self._tabs)

    @property
    def current_index(self) -> int:
        """Index of the selected tab."""
        return self._current

    def __len__(self) -> int:
        return len(self._tabs)

    def real_tab_count(self) -> int:
        """Number of tabs showing content, i.e. all but the "+" button."""
        return max(len(self._tabs) - 1, 0)

    def current_tab(self) -> Tab | None:
        """The selected tab."""
        if 0 <= self._current < len(self._tabs):
            return self._tabs[self._current]
        return None

    def set_current_index(self, index: int) -> None:
        """Select the tab at ``index``; out-of-range indices are ignored.

        Selecting the "+" button selects the last real tab instead.
        """
        if not 0 <= index < len(self._tabs):
            return
        real = self.real_tab_count()
        if index >= real:
            index = real - 1
        self._current = index

    def _insert(self, index: int, tab: Tab) -> int:
        self._tabs.insert(index, tab)
        if self._current >= index:
            self._current += 1
        return index

    def create_new_tab(self, set_current: bool, adjacent_to_current: bool) -> Tab:
        """Add a book tab next to the selected one, or else before the "+" button."""
        index = self._current + 1 if adjacent_to_current else self.real_tab_count()
        tab = Tab(TabKind.ZIM)
        index = self._insert(index, tab)
        if set_current:
            self.set_current_index(index)
        return tab

    def open_settings(self) -> Tab:
        """Select the settings tab, opening it next to the selected tab if needed."""
        for index, tab in enumerate(self._tabs):
            if tab.kind is TabKind.SETTINGS:
                self.set_current_index(index)
                return tab
        tab = Tab(TabKind.SETTINGS)
        index = self._insert(self._current + 1, tab)
        self.set_current_index(index)
        return tab

    def move_to_next_tab(self) -> None:
        """Select the next tab, wrapping round to the first."""
        index = self._current
        self.set_current_index(0 if index == self.real_tab_count() - 1 else index + 1)

    def move_to_previous_tab(self) -> None:
        """Select the previous tab, wrapping round to the last."""
        index = self._current
        self.set_current_index(self.real_tab_count() - 1 if index <= 0 else index - 1)

    def select_by_shortcut(self, number: int) -> None:
        """Select tab ``number`` (1-9, with 0 standing for 10) if it exists."""
        tab_n = 10 if number == 0 else number
        if tab_n >= len(self._tabs):
            return
        self.set_current_index(tab_n - 1)

    def _select_on_remove(self, index: int) -> None:
        if index == len(self._tabs) - 2:
            self.set_current_index(index - 1)
        else:
            self.set_current_index(index + 1)

    def close_tab(self, index: int) -> Tab | None:
        """Close the tab at ``index`` and return it.

        The "+" button and the library tab stay; None is returned for them.
        """
        if not 0 <= index < len(self._tabs):
            raise IndexError(f"no tab at index {index}")
        if index == self.real_tab_count():
            return None
        self._select_on_remove(index)
        tab = self._tabs[index]
        if tab.kind is TabKind.LIBRARY:
            return None
        del self._tabs[index]
        if self._current > index:
            self._current -= 1
        elif self._current == index:
            self.set_current_index(index)
        return tab

    def close_tabs_by_zim_id(self, zim_id: str) -> list[Tab]:
        """Close every tab showing the book ``zim_id``; returns the closed tabs."""
        closed = []
        for index in range(len(self._tabs) - 2, -1, -1):
            tab = self._tabs[index]
            if tab.kind is TabKind.ZIM and tab.zim_id == zim_id:
                removed = self.close_tab(index)
                if removed is not None:
                    closed.append(removed)
        return closed

    def set_title_of(self, title: str, tab: Tab | None = None) -> None:
        """Set the title of ``tab``, or of the selected tab when None."""
        target = tab if tab is not None else self.current_tab()
        if target is None or target not in self._tabs:
            return
        target.title = tab_title_from_url(title)

    def move_tab(self, source: int, target: int) -> bool:
        """Move a tab; returns False when the move is refused.

        Neither the library tab nor the "+" button moves, and nothing moves
        onto their places.  The selection follows the selected tab.
        """
        count = len(self._tabs)
        if not (0 <= source < count and 0 <= target < count):
            raise IndexError(f"cannot move tab {source} to {target}")
        last = self.real_tab_count()
        if source in (0, last) or target in (0, last):
            return False
        selected = self.current_tab()
        tab = self._tabs.pop(source)
        self._tabs.insert(target, tab)
        if selected is not None:
            self._current = self._tabs.index(selected)
        return True

    def tab_size_hint(self, index: int) -> tuple[int, int]:
        """Size of a tab: the library tab shows only its icon."""
        if 0 <= index < len(self._tabs) and self._tabs[index].kind is TabKind.LIBRARY:
            return LIBRARY_TAB_SIZE
        return CONTENT_TAB_SIZE

    def history_actions_enabled(self) -> tuple[bool, bool]:
        """Whether back and forward are available in the selected tab."""
        tab = self.current_tab()
        if tab is not None and tab.kind is TabKind.ZIM:
            return tab.back_enabled, tab.forward_enabled
        return False, False