"""
msbase — Middleware Package
============================

What:  Cross-cutting concerns applied to every route.

Middleware Chain (order matters!):
    Request → [Request ID] → [Locale] → [Logging] → ([Auth]) → Handler

    Why this order:
    1. Request ID FIRST: reject uncorrelatable requests before any work
    2. Locale: every later error message can be rendered in the client's language
    3. Logging: wraps the rest, so it times handler + auth and sees the final status
    4. Auth: only on routes declared with requires_auth=True

    The first middleware in the list is the outermost wrapper, so responses
    unwind in reverse: the logging stage sees the status after the handler
    (or the error handler) has written it.
"""

from msbase.middleware.auth import AuthMiddleware
from msbase.middleware.base import (
    ErrorHandler,
    Handler,
    Middleware,
    Stage,
    chain_middleware,
)
from msbase.middleware.locale import LocaleMiddleware
from msbase.middleware.logging import RequestLoggingMiddleware
from msbase.middleware.request_id import RequestIDMiddleware

__all__ = [
    "AuthMiddleware",
    "ErrorHandler",
    "Handler",
    "LocaleMiddleware",
    "Middleware",
    "RequestIDMiddleware",
    "RequestLoggingMiddleware",
    "Stage",
    "chain_middleware",
]
