"""Handling of ``zim://`` URLs: content, metadata and full-text search requests."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import quote, unquote, urlsplit, urlunsplit

ZIM_SCHEME = "zim"
DEFAULT_PAGE_LENGTH = 25
FAVICON_SIZE = 48

_INT_RE = re.compile(r"\s*[+-]?\d+\s*")
_PATH_SAFE = "/:@!$&'()*+,;=~"


class RequestKind(enum.Enum):
    """Kind of ``zim://`` request, told apart by the suffix of the host."""

    CONTENT = ".zim"
    META = ".meta"
    SEARCH = ".search"


class UrlNotFound(LookupError):
    """The requested URL does not name anything that can be served."""


class UrlInvalid(ValueError):
    """The requested URL cannot be handled as asked."""


@dataclass(frozen=True)
class Reply:
    """Data served for a request, with its MIME type."""

    mime_type: str
    data: bytes


@dataclass(frozen=True)
class Redirect:
    """The request must be repeated at ``url``."""

    url: str


@dataclass(frozen=True)
class SearchParams:
    """Parameters of a full-text search request."""

    host: str
    book_id: str
    pattern: str
    start: int = 0
    page_length: int = DEFAULT_PAGE_LENGTH

    @property
    def book_query(self) -> str:
        """Query string selecting the searched book."""
        return f"content={self.book_id}"

    @property
    def protocol_prefix(self) -> str:
        """Prefix of links to articles in the results."""
        return f"{ZIM_SCHEME}://"

    @property
    def search_protocol_prefix(self) -> str:
        """Prefix of links to other result pages."""
        return f"{ZIM_SCHEME}://{self.host}/"


class _Item(Protocol):
    path: str
    data: bytes
    mimetype: str


class _Entry(Protocol):
    is_redirect: bool

    def get_item(self, follow: bool) -> _Item: ...


class _Archive(Protocol):
    def get_entry_by_path(self, path: str) -> _Entry: ...

    def get_main_entry(self) -> _Entry: ...


class _Illustration(Protocol):
    data: bytes
    mime_type: str


class _Book(Protocol):
    def get_illustration(self, size: int) -> _Illustration: ...


class _Search(Protocol):
    def render_html(self, params: SearchParams) -> str: ...


class _Searcher(Protocol):
    def search(self, pattern: str) -> _Search: ...


class _Library(Protocol):
    def get_archive(self, zim_id: str) -> _Archive: ...

    def get_book_by_id(self, zim_id: str) -> _Book: ...

    def get_searcher(self, book_id: str) -> _Searcher: ...


def _host(url: str) -> str:
    return urlsplit(url).hostname or ""


def _query_items(url: str) -> list[tuple[str, str]]:
    """Query items in order; ``+`` is kept as is, percent escapes are decoded."""
    query = urlsplit(url).query
    items = []
    for part in query.split("&"):
        if not part:
            continue
        key, _, value = part.partition("=")
        items.append((unquote(key), unquote(value)))
    return items


def _query_value(items: list[tuple[str, str]], key: str) -> str | None:
    return next((value for name, value in items if name == key), None)


def _to_int(text: str | None, default: int) -> int:
    if text is None or not _INT_RE.fullmatch(text):
        return default
    return int(text)


def zim_id_from_url(url: str) -> str:
    """The book id: the host up to its first dot."""
    return _host(url).split(".")[0]


def result_type_from_url(url: str) -> str:
    """The part of the host after its first dot, or ``""`` when there is none."""
    parts = _host(url).split(".")
    return parts[1] if len(parts) > 1 else ""


def is_search_results_url(url: str) -> bool:
    """Whether ``url`` shows full-text search results."""
    has_pattern = any(name == "pattern" for name, _ in _query_items(url))
    return has_pattern and result_type_from_url(url) == "search"


def accepts_navigation(url: str) -> bool:
    """Whether the viewer itself navigates to ``url``; others belong to an external browser."""
    return urlsplit(url).scheme == ZIM_SCHEME


def home_page_url(zim_id: str) -> str:
    """URL of the main page of a book."""
    return f"{ZIM_SCHEME}://{zim_id}.zim/"


def classify_request(url: str) -> RequestKind:
    """Which kind of request ``url`` is; raises :class:`UrlNotFound` for none."""
    host = _host(url)
    for kind in RequestKind:
        if host.endswith(kind.value):
            return kind
    raise UrlNotFound(url)


def content_path(url: str) -> str:
    """Decoded path of an entry in a book, without its leading slash."""
    path = unquote(urlsplit(url).path)
    return path[1:] if path.startswith("/") else path


def parse_search_request(url: str) -> SearchParams:
    """Read the book, pattern and paging of a search request."""
    host = _host(url)
    items = _query_items(url)
    book_id = host.split(".")[0]
    if book_id == "library":
        book_id = _query_value(items, "content") or ""
    return SearchParams(
        host=host,
        book_id=book_id,
        pattern=_query_value(items, "pattern") or "",
        start=_to_int(_query_value(items, "start"), 0),
        page_length=_to_int(_query_value(items, "pageLength"), DEFAULT_PAGE_LENGTH),
    )


def history_back_items(titles: list[str], current: int) -> list[tuple[int, str]]:
    """Entries before ``current`` in the history, nearest first, as ``(index, title)``."""
    if current <= 0:
        return []
    return [(index, titles[index]) for index in range(current - 1, -1, -1)]


def history_forward_items(titles: list[str], current: int) -> list[tuple[int, str]]:
    """Entries after ``current`` in the history, nearest first, as ``(index, title)``."""
    return [(index, titles[index]) for index in range(current + 1, len(titles))]


def _entry_from_path(archive: _Archive, path: str) -> _Entry:
    try:
        return archive.get_entry_by_path(path)
    except KeyError:
        if path in ("", "/"):
            return archive.get_main_entry()
    raise KeyError("Cannot find entry for non empty path")


class UrlSchemeHandler:
    """Serves ``zim://`` requests from a library of books."""

    def __init__(self, library: _Library) -> None:
        self._library = library

    def request_started(self, url: str) -> Reply | Redirect:
        """Answer a request for ``url``.

        Raises :class:`UrlNotFound` or :class:`UrlInvalid` when it fails.
        """
        kind = classify_request(url)
        if kind is RequestKind.CONTENT:
            return self._content(url)
        if kind is RequestKind.META:
            return self._meta(url)
        return self._search(url)

    def _content(self, url: str) -> Reply | Redirect:
        zim_id = _host(url)[: -len(RequestKind.CONTENT.value)]
        path = content_path(url)
        try:
            archive = self._library.get_archive(zim_id)
        except KeyError:
            raise UrlNotFound(url) from None
        try:
            entry = _entry_from_path(archive, path)
            item = entry.get_item(True)
        except KeyError:
            raise UrlNotFound(url) from None
        if entry.is_redirect:
            parts = urlsplit(url)
            target = quote("/" + item.path, safe=_PATH_SAFE)
            return Redirect(urlunsplit(parts._replace(path=target)))
        mime_type = item.mimetype.split(";")[0]
        return Reply(mime_type, bytes(item.data))

    def _meta(self, url: str) -> Reply:
        parts = _host(url).split(".")
        zim_id, meta_name = parts[0], parts[1]
        if meta_name == "favicon":
            try:
                book = self._library.get_book_by_id(zim_id)
                illustration = book.get_illustration(FAVICON_SIZE)
                return Reply(illustration.mime_type, bytes(illustration.data))
            except Exception:
                pass
        raise UrlNotFound(url)

    def _search(self, url: str) -> Reply:
        params = parse_search_request(url)
        try:
            search = self._library.get_searcher(params.book_id).search(params.pattern)
        except Exception as exc:
            raise UrlInvalid(url) from exc
        html = search.render_html(params)
        return Reply("text/html", html.encode("utf-8"))