"""
msbase — Request Logging Middleware
====================================

What:  One access-log record per request.
Why:   Monitoring and debugging need method, path, client agent, final
       status and duration for every request, correlated by request ID.
How:   Starts a timer, runs the rest of the chain, and logs in a `finally`
       block, so the record is written even when something downstream
       raises. The status comes from the response writer (what was actually
       sent), not from what the handler meant to send.
When:  After RequestIDMiddleware and LocaleMiddleware, so the request ID is
       already in the context.

What we log vs what we DON'T log (privacy):
    ✅ Log: method, path, status, duration, user-agent, request ID
    ❌ Don't log: request body, headers with auth
"""

import time

from msbase.context import Exchange
from msbase.logger import ServiceLogger
from msbase.middleware.base import ErrorHandler, Handler, Middleware


class RequestLoggingMiddleware(Middleware):
    def __init__(self, logger: ServiceLogger):
        self.logger = logger

    def execute(self, next_handler: Handler, handle_error: ErrorHandler) -> Handler:
        async def handler(exchange: Exchange) -> None:
            # Why time.perf_counter: monotonic and high resolution
            start_time = time.perf_counter()
            try:
                await next_handler(exchange)
            finally:
                duration_ms = (time.perf_counter() - start_time) * 1000
                self.logger.request(
                    exchange.context,
                    exchange.request,
                    exchange.writer.status_code,
                    duration_ms,
                )

        return handler
