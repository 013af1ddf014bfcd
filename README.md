# kiwidesk

Building blocks for a desktop reader of offline `zim://` content. The package
makes sure only one instance runs and passes messages to it, looks up interface
strings, answers `zim://` requests, and keeps track of tabs, zoom and
history-button state. None of it needs a GUI toolkit, so each piece can be used
and tested on its own.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Modules

### `kiwidesk.lockedfile`

`LockedFile(name)` is a file that can hold an advisory lock shared between
processes. Its modes are `LockMode.NO_LOCK`, `LockMode.READ_LOCK` and
`LockMode.WRITE_LOCK`.

- `open(mode="r+")` opens the file. `"r+"` and the append modes create a file
  that does not exist yet. Any mode containing `"w"` is refused with
  `LockedFileError`, because it would truncate the file.
- `lock(mode, block=True)` returns `True` if the file is locked afterwards.
  With `block=False` it returns `False` at once when another holder is in the
  way. `unlock()` releases the lock. `is_locked()` and `lock_mode()` report
  what is held.
- `lock` and `unlock` raise `LockedFileError` if the file is not open.
- `close()` releases the lock and closes the file. The object also works as a
  context manager.

### `kiwidesk.localpeer`

`LocalPeer(app_id="", on_message=None)` works out whether another instance of
the same application is running:

- `is_client()` returns `True` if another instance already holds the lock file
  in the temporary directory. Otherwise this peer takes the lock and starts
  listening on a local socket. That is a Unix-domain socket, or a loopback TCP
  port where Unix sockets are not available.
- `send_message(message, timeout=5000)` sends text to the running instance.
  The timeout is in milliseconds. It returns `True` once the message has been
  acknowledged. The listening peer hands each message to `on_message`.
- `application_id()` returns the id. An empty id stands for the path of the
  running program.
- `close()` stops listening and releases the lock.

`socket_name_for(app_id, user_id=None)` builds the shared socket name, and
`qchecksum(data)` is the CRC-16 used in that name.

### `kiwidesk.coreapp` and `kiwidesk.singleapp`

`SingleCoreApplication(app_id="")` and `SingleApplication(app_id="")` wrap a
peer. Both offer these methods:

- `is_running()`
- `send_message(message, timeout=5000)`
- `id()`
- `add_message_listener(callback)`
- `close()`

Both also work as context managers.

`SingleApplication` adds an activation window, which is any object with
`restore()`, `raise_()` and `activate()` methods:

- `set_activation_window(window, activate_on_message=True)` sets the window.
  With `activate_on_message`, the window is activated every time a message
  arrives, before the listeners are called.
- `activation_window()` returns the window.
- `activate_window()` brings the window forward.
- `initialize()` calls `is_running()`.

### `kiwidesk.translation`

`Translation(directory)` reads `<language>.json` files from a directory.
`set_translation(locale)` loads a locale such as `"fr"` or `"pt_BR"`
(underscores become hyphens). Any key that is missing or empty in that file
falls back to `en.json`. If `en.json` is missing or empty,
`TranslationError` is raised.

`get_text(key)` returns the string, or the key itself when there is none.
`json_file_to_map(path)` reads one file; an unreadable or invalid file gives
`{}`.

### `kiwidesk.urls`

Helpers for `zim://` URLs:

- `zim_id_from_url`
- `result_type_from_url`
- `is_search_results_url`
- `accepts_navigation`, which is true only for the `zim` scheme
- `home_page_url`
- `classify_request`, which returns a `RequestKind` by host suffix: `.zim`,
  `.meta` or `.search`
- `content_path`
- `parse_search_request`, which returns `SearchParams`; `start` defaults to 0
  and `page_length` to 25
- `history_back_items` and `history_forward_items`

`UrlSchemeHandler(library).request_started(url)` returns either a `Reply`
(MIME type and bytes) or a `Redirect`. It raises `UrlNotFound` or `UrlInvalid`
when the request cannot be answered.

The `library` object is supplied by the caller. It must provide:

- `get_archive(zim_id)`. Its entries are looked up with `get_entry_by_path`
  and `get_main_entry`. Missing archives and entries raise `KeyError`.
- `get_book_by_id(zim_id)`, whose book supplies `get_illustration(size)` for
  favicons.
- `get_searcher(book_id)`, whose `.search(pattern)` result renders HTML with
  `render_html(params)`.

### `kiwidesk.views`

Zoom rules:

- `clamp_zoom` keeps a factor between 0.25 and 5.0.
- `zoom_in` and `zoom_out` move one step of 0.1.
- `ZoomStore` keeps one factor per book, with a default for the rest.

`ZimView(zim_id, store)` offers these methods:

- `zoom_in()`
- `zoom_out()`
- `zoom_reset()`
- `on_default_zoom_changed()`
- `open_find_in_page_bar()`

The module also has:

- `hovered_link_text(url)`, which gives the tool tip text for a hovered link.
- `HistoryButtons`, which follows `WebAction.BACK` and `WebAction.FORWARD`
  availability.
- `WindowDragger`, which turns left-button presses and moves into new window
  positions.

### `kiwidesk.tabs`

`TabBarModel` holds the tab strip. The library tab always comes first and the
"+" (new tab) button always comes last. Neither can be closed or moved, and the
"+" button is never selected.

Methods:

- `create_new_tab`
- `open_settings`
- `move_to_next_tab` and `move_to_previous_tab`, which wrap round
- `select_by_shortcut`, where 0 stands for tab 10
- `close_tab`
- `close_tabs_by_zim_id`
- `set_title_of`, which shows only the decoded path for `zim://` titles; this
  is also available as `tab_title_from_url`
- `move_tab`
- `tab_size_hint`
- `history_actions_enabled`

## Example

```python
from kiwidesk.singleapp import SingleApplication

with SingleApplication("my-reader") as app:
    if app.is_running():
        app.send_message("open book.zim", 5000)
    else:
        app.add_message_listener(print)
```

```python
from kiwidesk.tabs import TabBarModel

bar = TabBarModel()
tab = bar.create_new_tab(True, False)
bar.set_title_of("zim://wiki.zim/A/Home", tab)
print(tab.title)  # /A/Home
```

## What this package does not do

This package contains state and logic only. It does not provide:

- a window, web engine or other user interface;
- a command to start a reader;
- code that reads ZIM archives, runs full-text searches or renders result
  pages;
- persistent settings storage.

`UrlSchemeHandler` relies on a library object supplied by the caller, and
`ZoomStore` keeps its factors in memory only.