"""User interface strings loaded from per-language JSON files."""

from __future__ import annotations

import json
import os
from pathlib import Path


class TranslationError(Exception):
    """Raised when the default translation cannot be loaded."""


def json_file_to_map(path: str | os.PathLike[str]) -> dict[str, str]:
    """Read a JSON object of strings; an unreadable or invalid file gives ``{}``.

    Values that are not strings map to the empty string.
    """
    try:
        raw = Path(path).read_bytes()
    except OSError:
        return {}
    try:
        document = json.loads(raw)
    except ValueError:
        return {}
    if not isinstance(document, dict):
        return {}
    return {key: value if isinstance(value, str) else "" for key, value in document.items()}


def _language_tag(locale: str) -> str:
    return locale.replace("_", "-")


class Translation:
    """Looks up interface strings in a directory of ``<language>.json`` files.

    English (``en.json``) supplies every string missing or empty in the
    chosen language.
    """

    DEFAULT_LANGUAGE = "en"

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self._directory = Path(directory)
        self._translations: dict[str, str] = {}

    def _file_for(self, language: str) -> Path:
        return self._directory / f"{language}.json"

    def set_translation(self, locale: str) -> None:
        """Load the strings for ``locale``, falling back to English."""
        default_text = json_file_to_map(self._file_for(self.DEFAULT_LANGUAGE))
        if not default_text:
            raise TranslationError("Invalid translation file")
        language = _language_tag(locale)
        if language == self.DEFAULT_LANGUAGE:
            self._translations = default_text
            return
        translations = json_file_to_map(self._file_for(language))
        for key, value in default_text.items():
            if not translations.get(key):
                translations[key] = value
        self._translations = translations

    def get_text(self, key: str) -> str:
        """The string for ``key``, or ``key`` itself when there is none."""
        return self._translations.get(key, key)