"""
msbase — Service Logger
========================

What:  The logging surface the server and middleware write to.
Why:   Every record emitted while serving a request must carry the request
       ID so one request's lines can be pulled out of the stream.
How:   Thin wrapper over stdlib `logging`. The request ID travels in
       `extra={"request_id": ...}` and is rendered by the format configured
       in `msbase.main.setup_logging` (see RequestIDLogFilter).

Access log line:
    2024-02-03T20:17:12 [INFO] msbase.access [a1b2c3] GET /api/health 200 1.3ms agent=curl/8.4.0
"""

import logging
from typing import Optional

from starlette.requests import Request

from msbase.context import RequestContext

NO_REQUEST_ID = "-"


class RequestIDLogFilter(logging.Filter):
    """Makes `%(request_id)s` safe to use for records logged outside a request."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "request_id", None):
            record.request_id = NO_REQUEST_ID
        return True


class ServiceLogger:
    """
    Leveled, request-correlated logging.

    Attributes:
        access: Logger receiving one record per completed request
        app:    Logger for free-form messages
    """

    def __init__(
        self,
        access: Optional[logging.Logger] = None,
        app: Optional[logging.Logger] = None,
    ):
        self.access = access or logging.getLogger("msbase.access")
        self.app = app or logging.getLogger("msbase")

    @staticmethod
    def _extra(context: Optional[RequestContext]) -> dict:
        rid = context.request_id if context is not None else None
        return {"request_id": rid or NO_REQUEST_ID}

    def request(
        self,
        context: Optional[RequestContext],
        request: Request,
        status: Optional[int],
        duration_ms: float,
    ) -> None:
        """Record a completed request at INFO severity."""
        method = request.method
        path = request.url.path
        agent = request.headers.get("user-agent", "")
        extra = self._extra(context)
        extra.update(
            {
                "method": method,
                "path": path,
                "user_agent": agent,
                "status": status or 0,
                "duration_ms": round(duration_ms, 2),
            }
        )
        self.access.info(
            "%s %s %d %.1fms agent=%s",
            method,
            path,
            status or 0,
            duration_ms,
            agent,
            extra=extra,
        )

    def info(self, context: Optional[RequestContext], msg: str, *args) -> None:
        self.app.info(msg, *args, extra=self._extra(context))

    def warning(self, context: Optional[RequestContext], msg: str, *args) -> None:
        self.app.warning(msg, *args, extra=self._extra(context))

    def error(
        self,
        context: Optional[RequestContext],
        msg: str,
        *args,
        exc_info=None,
    ) -> None:
        self.app.error(msg, *args, exc_info=exc_info, extra=self._extra(context))
