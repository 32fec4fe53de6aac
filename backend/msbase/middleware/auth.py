"""
msbase — Authentication Gate
=============================

What:  The insertion point for an authentication check on protected routes.
Why:   Only routes declared with `requires_auth=True` get this stage
       appended to their chain. The check itself belongs to the service
       (JWT, API keys, session lookup...), so it is injected as `verifier`.
How:   1. Read `Authorization: Bearer <token>`.
       2. Missing/malformed → Unauthorized (401), chain stops.
       3. `verifier(token)` → principal, or None/False to reject (401).
          The verifier may also raise any domain error itself.
       4. The principal is stored in the request context for the handler.

The verifier may be a plain function or a coroutine function.
"""

import inspect
from typing import Any, Awaitable, Callable, Optional, Union

from msbase.context import Exchange
from msbase.exceptions import LocalizableError, UnauthorizedError
from msbase.middleware.base import Stage

UNAUTHORIZED_KEY = "unauthorized"

Verifier = Callable[[str], Union[Any, Awaitable[Any]]]


def bearer_token(header_value: Optional[str]) -> Optional[str]:
    """Extracts the credential of a `Bearer <token>` header value."""
    if not header_value:
        return None
    scheme, _, token = header_value.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class AuthMiddleware(Stage):
    suggested_status = 401

    def __init__(self, verifier: Verifier, header_name: str = "Authorization"):
        self.verifier = verifier
        self.header_name = header_name

    async def process(self, exchange: Exchange) -> Exchange:
        token = bearer_token(exchange.request.headers.get(self.header_name))
        if token is None:
            raise LocalizableError(UNAUTHORIZED_KEY, UnauthorizedError("missing bearer token"))

        principal = self.verifier(token)
        if inspect.isawaitable(principal):
            principal = await principal
        if not principal:
            raise LocalizableError(UNAUTHORIZED_KEY, UnauthorizedError("invalid credentials"))

        return exchange.with_context(exchange.context.with_principal(principal))
