"""
msbase — Routing Contract
==========================

What:  What a controller hands to the server: a fixed list of routes.
Why:   The server owns the transport, the middleware chain and error
       rendering. Controllers only say "this path + method is handled by
       this function" and return `APIResponse` values.
How:   `Controller.routes()` is called once at startup; the routes are
       frozen and never change while the server runs.

Handler signature:
    async def handler(request: Request, context: RequestContext) -> APIResponse

    Plain (non-async) functions are accepted too and run in a threadpool.
    Handlers report failures by raising taxonomy errors, never by building
    error responses themselves.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Union

from starlette.requests import Request

from msbase.context import RequestContext
from msbase.error_mapping import map_to_http, requires_logging
from msbase.exceptions import InvalidInputError, LocalizableError
from msbase.logger import ServiceLogger
from msbase.response import APIResponse
from msbase.translator import Translator

APIFunc = Callable[[Request, RequestContext], Union[APIResponse, Awaitable[APIResponse]]]

INVALID_ID_KEY = "invalidid"

_MAX_UINT32 = 2**32 - 1


@dataclass(frozen=True)
class Route:
    """
    One endpoint.

    Attributes:
        path:          Starlette path pattern relative to the API prefix, e.g. "/boats/{id}"
        method:        HTTP method ("GET", "POST", ...)
        handler:       The APIFunc serving it
        requires_auth: Append the auth middleware to this route's chain
        skip_request_id: Serve the route without requiring a request ID header
                         (liveness probes)
    """

    path: str
    method: str
    handler: APIFunc
    requires_auth: bool = False
    skip_request_id: bool = False

    def __post_init__(self):
        object.__setattr__(self, "method", self.method.upper())


class Controller(ABC):
    """Anything that can declare routes."""

    @abstractmethod
    def routes(self) -> List[Route]:
        """Returns every route this controller serves."""


class CommonController(Controller, ABC):
    """
    Base class with helpers most controllers need.

    Attributes:
        translator: For handlers that build localized output themselves
        logger:     Service logger (request-correlated)
    """

    def __init__(
        self,
        translator: Optional[Translator] = None,
        logger: Optional[ServiceLogger] = None,
    ):
        self.translator = translator or Translator()
        self.logger = logger or ServiceLogger(app=logging.getLogger(type(self).__module__))

    def error_response(self, err: BaseException, context: RequestContext) -> APIResponse:
        """
        Map an error to a complete `{"error": ...}` response.

        For handlers that want to answer with an error instead of raising.
        Internal and unrecognized errors are logged here first.
        """
        if requires_logging(err):
            self.logger.error(context, "internal error: %s", err, exc_info=err)
        http_error = map_to_http(err, context.locale, self.translator)
        return APIResponse(
            status=http_error.status_code,
            content={"error": http_error.message},
            headers={"Content-Type": "application/json"},
        )

    @staticmethod
    def read_id_from_path(request: Request) -> int:
        """
        Read the `{id}` path parameter as an unsigned integer.

        /boats/{id}/book with /boats/12/book → 12

        Raises:
            LocalizableError(InvalidInputError): no id, or not an unsigned 32-bit integer.
        """
        raw = request.path_params.get("id")
        if raw is None or str(raw) == "":
            raise LocalizableError(INVALID_ID_KEY, InvalidInputError("no id provided at path"))
        raw = str(raw)
        if not (raw.isascii() and raw.isdigit()) or int(raw) > _MAX_UINT32:
            raise LocalizableError(
                INVALID_ID_KEY, InvalidInputError("id is not an unsigned integer")
            )
        return int(raw)
