"""
msbase — Error → HTTP Mapping
==============================

What:  Pure function turning any exception into a status code and a
       user-facing message for the request's locale.
Why:   Status codes for failures are chosen here and nowhere else, so every
       controller reports the same failure the same way.
How:   1. Find the translation key (if the error is a LocalizableError).
       2. Find the taxonomy kind, unwrapping wrappers and `__cause__` chains.
       3. Walk the mapping table top to bottom.

Mapping table (evaluated in order):
    InvalidInput  → 400
    Unauthorized  → 401
    NotFound      → 404
    Conflict      → 409
    Internal      → 500
    anything else → 500 + localized "internalerror" (raw text never leaked)
"""

from typing import Optional, Tuple

from msbase.exceptions import ErrorKind, HTTPError, find_kind, find_localizable
from msbase.translator import Translator

INTERNAL_ERROR_KEY = "internalerror"

_STATUS_BY_KIND: Tuple[Tuple[ErrorKind, int], ...] = (
    (ErrorKind.INVALID_INPUT, 400),
    (ErrorKind.UNAUTHORIZED, 401),
    (ErrorKind.NOT_FOUND, 404),
    (ErrorKind.CONFLICT, 409),
    (ErrorKind.INTERNAL, 500),
)


def map_to_http(
    err: Optional[BaseException],
    locale: Optional[str],
    translator: Translator,
) -> HTTPError:
    """
    Resolve the status code and message for `err`.

    Never raises. Unrecognized errors (including None) resolve to 500 with
    the generic internal-error message in `locale`.
    """
    kind = find_kind(err)
    for candidate, status in _STATUS_BY_KIND:
        if kind is candidate:
            localizable = find_localizable(err)
            if localizable is not None:
                message = translator.translate(locale, localizable.key)
            else:
                message = str(err)
            return HTTPError(status_code=status, message=message)

    return HTTPError(
        status_code=500,
        message=translator.translate(locale, INTERNAL_ERROR_KEY),
    )


def requires_logging(err: Optional[BaseException]) -> bool:
    """
    True when the boundary must log `err` at ERROR severity before discarding it.

    That is Internal errors and anything outside the taxonomy, whose detail
    never reaches the client.
    """
    kind = find_kind(err)
    return kind is None or kind is ErrorKind.INTERNAL
