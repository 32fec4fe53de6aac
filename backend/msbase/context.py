"""
msbase — Request-Scoped State
==============================

What:  The per-request record threaded through every middleware stage.
Why:   Request ID, locale and the authenticated principal are needed by
       later stages, the error handler and the access log. Passing them in
       the stage signature makes their presence explicit instead of hiding
       them in a key/value side channel.
How:   Both records are frozen. A stage that sets a field returns a *new*
       record (`with_request_id`, `with_locale`, ...); stages downstream only
       ever see the finished value.

Lifetime: one request. Never cached, never shared between requests.
"""

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Optional

from starlette.requests import Request

if TYPE_CHECKING:
    from msbase.response import ResponseWriter


@dataclass(frozen=True)
class RequestContext:
    """
    Attributes:
        request_id: Client-supplied correlation ID (set by RequestIDMiddleware)
        locale:     Resolved language (set by LocaleMiddleware, configured default otherwise)
        principal:  Whatever the auth verifier returned (set by AuthMiddleware)
    """

    request_id: Optional[str] = None
    locale: str = ""
    principal: Any = None

    def with_request_id(self, request_id: str) -> "RequestContext":
        return replace(self, request_id=request_id)

    def with_locale(self, locale: str) -> "RequestContext":
        return replace(self, locale=locale)

    def with_principal(self, principal: Any) -> "RequestContext":
        return replace(self, principal=principal)


@dataclass(frozen=True)
class Exchange:
    """One in-flight request: the incoming request, its writer and its state."""

    request: Request
    writer: "ResponseWriter"
    context: RequestContext

    def with_context(self, context: RequestContext) -> "Exchange":
        return replace(self, context=context)
