"""
msbase — Domain Error Taxonomy
===============================

What:  The closed set of error kinds business code may raise, plus the
       wrapper that attaches a translation key to any of them.
Why:   Business logic reports *what* went wrong, never *which HTTP status*
       to send. The server's error handler is the single place that turns a
       kind into a status code (see `msbase.error_mapping`).
How:   Every domain error carries an `ErrorKind`. Errors are matched by kind,
       never by message text. `LocalizableError` wraps a domain error with a
       translation key so the boundary can render a message in the
       request's locale.
Who:   Raised by controllers, services and middleware stages; consumed once
       by the error mapper at the boundary.

Exception Hierarchy:
    MsBaseError (base)
    ├── DomainError
    │   ├── InvalidInputError     → 400 Bad Request
    │   ├── UnauthorizedError     → 401 Unauthorized
    │   ├── NotFoundError         → 404 Not Found
    │   ├── ConflictError         → 409 Conflict
    │   └── InternalError         → 500 Internal Server Error (always logged)
    ├── LocalizableError          → status of the wrapped error
    └── TranslationLoadError      → startup failure (never reaches a client)

Example:
    raise LocalizableError("boatnotfound", NotFoundError(f"boat {boat_id} not found"))
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(Enum):
    """Taxonomy kinds. The value is the fixed HTTP status of the kind."""

    INVALID_INPUT = 400
    UNAUTHORIZED = 401
    NOT_FOUND = 404
    CONFLICT = 409
    INTERNAL = 500

    @property
    def status_code(self) -> int:
        return self.value


class MsBaseError(Exception):
    """Base exception for all msbase errors."""


class DomainError(MsBaseError):
    """
    A business-logic failure tagged with one taxonomy kind.

    Attributes:
        message:  Error text. Exposed to the client only when the error is
                  mapped without a translation key.
        context:  Additional debug info (logged, never returned to the client)
    """

    kind: ErrorKind = ErrorKind.INTERNAL
    default_message: str = "unexpected internal error"

    def __init__(
        self,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        self.context = context or {}
        super().__init__(self.message)


class InvalidInputError(DomainError):
    """The client sent something it can fix (missing header, malformed id...)."""

    kind = ErrorKind.INVALID_INPUT
    default_message = "invalid input"


class UnauthorizedError(DomainError):
    """The caller is not authenticated or not allowed to perform the action."""

    kind = ErrorKind.UNAUTHORIZED
    default_message = "not authorized"


class NotFoundError(DomainError):
    """The requested resource does not exist."""

    kind = ErrorKind.NOT_FOUND
    default_message = "resource not found"


class ConflictError(DomainError):
    """The request collides with the current state of a resource."""

    kind = ErrorKind.CONFLICT
    default_message = "resource conflict"


class InternalError(DomainError):
    """
    Something broke on our side.

    The boundary logs the full error at ERROR level before answering; the
    client only ever sees the message of this error, never a stack trace.
    """

    kind = ErrorKind.INTERNAL
    default_message = "unexpected internal error"


class LocalizableError(MsBaseError):
    """
    Wraps an error with a translation key for a user-facing message.

    What:    The mapper resolves `key` in the request's locale and uses the
             wrapped error only to pick the status code.
    Why:     Business code knows which message fits, the boundary knows the
             locale. Neither has to know the other's half.

    The key must exist at least in the default locale's translation file.
    """

    def __init__(self, key: str, error: BaseException):
        self.key = key
        self.error = error
        self.__cause__ = error
        super().__init__(str(error))

    def __str__(self) -> str:
        return str(self.error)


class TranslationLoadError(MsBaseError):
    """Raised at startup when a locale file cannot be read or parsed."""

    def __init__(self, language: str, path: str, reason: str):
        self.language = language
        self.path = path
        super().__init__(f"error loading translation '{language}' from {path}: {reason}")


@dataclass(frozen=True)
class HTTPError:
    """Final status code and user-facing message for a failed request."""

    status_code: int
    message: str

    def __str__(self) -> str:
        return self.message


# ── Unwrapping helpers ────────────────────────────────────────────────────

def _unwrap_chain(err: Optional[BaseException]):
    """Yields `err` and every error it wraps, outermost first."""
    seen = set()
    while err is not None and id(err) not in seen:
        seen.add(id(err))
        yield err
        if isinstance(err, LocalizableError):
            err = err.error
        else:
            err = err.__cause__


def find_kind(err: Optional[BaseException]) -> Optional[ErrorKind]:
    """Returns the taxonomy kind of the first domain error in the chain."""
    for candidate in _unwrap_chain(err):
        if isinstance(candidate, DomainError):
            return candidate.kind
    return None


def find_localizable(err: Optional[BaseException]) -> Optional[LocalizableError]:
    """Returns the outermost LocalizableError in the chain, if any."""
    for candidate in _unwrap_chain(err):
        if isinstance(candidate, LocalizableError):
            return candidate
    return None
