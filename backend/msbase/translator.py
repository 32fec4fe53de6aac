"""
msbase — Translation Table
===========================

What:  Read-only (locale, key) → localized string lookup.
Why:   User-facing error messages are rendered in the request's locale.
How:   The table is built once at startup and passed explicitly to whatever
       needs lookups (error mapper, controllers). Nothing reads it from a
       module-level global, so tests can hand in a fixed table.
When:  Loaded before the server accepts requests; never mutated afterwards.

Fallback rule:
    A missing locale or a missing key never fails the request: the raw key
    is returned instead. Applying the fallback twice yields the same key.

File format (one flat JSON object per locale, e.g. locales/es.json):
    {
        "internalerror": "Error interno inesperado",
        "notfound": "Recurso no encontrado"
    }
"""

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from msbase.exceptions import TranslationLoadError

logger = logging.getLogger(__name__)


class Translator:
    """Immutable locale → key → message table."""

    def __init__(self, table: Optional[Mapping[str, Mapping[str, str]]] = None):
        # Copy into read-only views so callers can't mutate the table later
        self._table = MappingProxyType(
            {
                locale: MappingProxyType(dict(messages))
                for locale, messages in (table or {}).items()
            }
        )

    @classmethod
    def from_directory(cls, directory: str, languages: Iterable[str]) -> "Translator":
        """
        Load `<language>.json` for every requested language.

        Raises:
            TranslationLoadError: a file is missing, unreadable, not valid
                JSON, or not a flat object of strings.
        """
        table = {}
        for language in languages:
            path = Path(directory) / f"{language}.json"
            try:
                raw = json.loads(path.read_text(encoding="utf-8"))
            except OSError as e:
                raise TranslationLoadError(language, str(path), e.strerror or str(e)) from e
            except json.JSONDecodeError as e:
                raise TranslationLoadError(language, str(path), f"invalid JSON: {e.msg}") from e

            if not isinstance(raw, dict) or not all(
                isinstance(k, str) and isinstance(v, str) for k, v in raw.items()
            ):
                raise TranslationLoadError(
                    language, str(path), "expected a flat object of string messages"
                )
            table[language] = raw
            logger.debug("Loaded %d messages for locale '%s'", len(raw), language)

        return cls(table)

    @property
    def locales(self) -> frozenset:
        return frozenset(self._table)

    def translate(self, locale: Optional[str], key: str) -> str:
        """Returns the message for `key` in `locale`, or `key` itself on any miss."""
        messages = self._table.get(locale or "")
        if messages is None:
            return key
        return messages.get(key, key)
