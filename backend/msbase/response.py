"""
msbase — Response Value & Response Writer
==========================================

What:  `APIResponse` is what handlers return; `ResponseWriter` is the only
       thing that talks to the ASGI transport.
Why:   The transport never tells us what it already sent, and it forbids
       header changes once the status line is out. The writer records the
       status actually transmitted (the access log needs it) and enforces
       the emission order.
How:   write(headers, status, content) always runs:
           1. apply headers   (Content-Type: application/json, then caller's)
           2. send status     (http.response.start)
           3. serialize body  (http.response.body)
       The first status write is final. Later writes are logged and ignored.

Serialization:
    Compact JSON with the same options as Starlette's JSONResponse, after
    FastAPI's `jsonable_encoder` (so pydantic models, datetimes and UUIDs
    work as payloads). Output is deterministic for a given payload.
    If it fails, the status is already on the wire: the error is logged and
    an empty body closes the response. Nothing is retried or re-raised.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from fastapi.encoders import jsonable_encoder
from starlette.datastructures import MutableHeaders
from starlette.types import Send

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


@dataclass(frozen=True)
class APIResponse:
    """
    A complete response produced by a handler or by the error path.

    Attributes:
        status:   HTTP status code
        content:  Any JSON-serializable payload; None means "no body"
        headers:  Extra headers, applied after the JSON Content-Type default
    """

    status: int
    content: Any = None
    headers: Dict[str, str] = field(default_factory=dict)


def encode_content(content: Any) -> bytes:
    """
    Serialize a payload to its canonical JSON bytes.

    Raises:
        TypeError / ValueError: the payload is not JSON-representable.
    """
    return json.dumps(
        jsonable_encoder(content),
        ensure_ascii=False,
        allow_nan=False,
        indent=None,
        separators=(",", ":"),
    ).encode("utf-8")


class ResponseWriter:
    """
    Decorator around an ASGI `send` callable that remembers what it sent.

    Attributes:
        status_code: Status actually transmitted, None until the status line is out.
    """

    def __init__(self, send: Send):
        self._send = send
        self._headers = MutableHeaders(raw=[])
        self._headers["content-type"] = JSON_CONTENT_TYPE
        self.status_code: Optional[int] = None
        self._status_written = False
        self._body_written = False
        self._closed = False

    @property
    def headers_sent(self) -> bool:
        return self._status_written

    @property
    def finished(self) -> bool:
        return self._body_written or self._closed

    def set_headers(self, headers: Optional[Mapping[str, str]]) -> None:
        """Apply custom headers. Ignored (and logged) once the status is sent."""
        if not headers:
            return
        if self._status_written:
            logger.warning("Headers %s ignored: status line already sent", list(headers))
            return
        for key, value in headers.items():
            self._headers[key] = value

    async def write_status(self, status: int) -> bool:
        """Send the status line with the pending headers. Returns False if it was a no-op."""
        if self._status_written:
            logger.warning(
                "Superfluous status write %d ignored: %s already sent", status, self.status_code
            )
            return False
        self._status_written = True
        try:
            await self._send(
                {
                    "type": "http.response.start",
                    "status": status,
                    "headers": self._headers.raw,
                }
            )
        except OSError as e:
            self._closed = True
            logger.warning("Client went away before status %d was sent: %s", status, e)
            return False
        self.status_code = status
        return True

    async def write_body(self, content: Any) -> None:
        """Serialize and send the body. Serialization errors are logged, never raised."""
        if self.finished:
            logger.warning("Body write ignored: response already finished")
            return
        if not self._status_written:
            await self.write_status(200)
            if self._closed:
                return

        body = b""
        if content is not None:
            try:
                body = encode_content(content)
            except Exception as e:
                # Status is already out: close with an empty body, never re-raise
                logger.error("Failed to write response: %s", e, exc_info=True)

        self._body_written = True
        try:
            await self._send({"type": "http.response.body", "body": body, "more_body": False})
        except OSError as e:
            self._closed = True
            logger.warning("Client went away while the body was being sent: %s", e)

    async def write(
        self,
        headers: Optional[Mapping[str, str]],
        status: int,
        content: Any,
    ) -> None:
        """Emit a full response: headers, then status, then body."""
        self.set_headers(headers)
        if not await self.write_status(status):
            return
        await self.write_body(content)

    async def write_response(self, response: APIResponse) -> None:
        await self.write(response.headers, response.status, response.content)
