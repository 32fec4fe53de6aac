"""
msbase — Request ID Middleware
===============================

What:  Requires a client-supplied request identifier on every request.
Why:   Every log line of a request is tagged with this ID, and clients quote
       it in support tickets. A request without one can't be correlated, so
       it is rejected up front.
How:   Reads `X-Request-ID` (configurable). Missing or blank → the chain
       stops with an InvalidInput error (400). Present → stored verbatim in
       the request context for every later stage.
When:  First middleware in the chain.
"""

from msbase.context import Exchange
from msbase.exceptions import InvalidInputError, LocalizableError
from msbase.middleware.base import Stage

REQUEST_ID_REQUIRED_KEY = "requestidrequired"


class RequestIDMiddleware(Stage):
    suggested_status = 400

    def __init__(self, header_name: str = "X-Request-ID"):
        self.header_name = header_name

    async def process(self, exchange: Exchange) -> Exchange:
        rid = exchange.request.headers.get(self.header_name, "").strip()
        if not rid:
            raise LocalizableError(
                REQUEST_ID_REQUIRED_KEY,
                InvalidInputError(f"{self.header_name} can't be null"),
            )
        return exchange.with_context(exchange.context.with_request_id(rid))
