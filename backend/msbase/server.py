"""
msbase — Server: Route Dispatch & Error Boundary
=================================================

What:  Turns controllers into a runnable ASGI application.
Why:   One place builds every middleware chain, renders every error and
       writes every response, so no controller can answer a failure with an
       ad-hoc status code or body shape.
How:   At build time, for every controller route:
           chain = global middlewares (- request ID if skip_request_id)
                   (+ auth middleware if requires_auth)
           handler = chain_middleware(terminal(route.handler), handle_error, chain)
       Routes are grouped by path and mounted under the API prefix on a
       FastAPI app. A catch-all route answers unknown paths with a 404
       through the same chain and writer. CORS wraps the whole thing.

Error boundary (handle_error):
    error ──► map_to_http(error, context.locale) ──► {"error": message}
              │
              └─ Internal / unrecognized ──► logged at ERROR with traceback

Lifecycle:
    Startup:  build() once; the route table is frozen afterwards
    Serving:  one asyncio task per request; only the translator and the
              route table are shared, both read-only
    Failure:  bind/serve errors are logged and re-raised (no restart)
"""

import inspect
from typing import Callable, Dict, List, Optional, Sequence

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.types import Receive, Scope, Send

from msbase import __version__
from msbase.context import Exchange, RequestContext
from msbase.error_mapping import map_to_http, requires_logging
from msbase.exceptions import InternalError, LocalizableError, NotFoundError, find_kind
from msbase.logger import ServiceLogger
from msbase.middleware.base import Handler, Middleware, chain_middleware
from msbase.middleware.request_id import RequestIDMiddleware
from msbase.response import APIResponse, ResponseWriter
from msbase.routing import APIFunc, Controller
from msbase.translator import Translator

NOT_FOUND_KEY = "notfound"
METHOD_NOT_ALLOWED_KEY = "methodnotallowed"

CORS_ALLOWED_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]
CORS_ALLOWED_HEADERS = ["Authorization", "Content-Type", "Credentials"]


class _PathEndpoint:
    """ASGI app serving every method registered for one path."""

    def __init__(self, server: "Server", path: str):
        self.server = server
        self.path = path
        self.handlers: Dict[str, Handler] = {}
        self.method_not_allowed: Optional[Handler] = None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        method = scope["method"]
        if method == "HEAD" and "HEAD" not in self.handlers:
            method = "GET"
        handler = self.handlers.get(method, self.method_not_allowed)
        await self.server.dispatch(handler, scope, receive, send)

    def allowed_methods(self) -> List[str]:
        """Registered methods, plus HEAD wherever GET is served."""
        methods = set(self.handlers)
        if "GET" in methods:
            methods.add("HEAD")
        return sorted(methods)


class _CatchAllEndpoint:
    """ASGI app answering paths no controller declared."""

    def __init__(self, server: "Server", handler: Handler):
        self.server = server
        self.handler = handler

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.server.dispatch(self.handler, scope, receive, send)


class Server:
    """
    Binds controllers, middlewares and the error boundary together.

    Attributes:
        controllers:     Route providers, read once in build()
        translator:      Read-only message table for error messages
        logger:          Request-correlated service logger
        middlewares:     Global chain, outermost first
        auth_middleware: Appended only to routes with requires_auth=True
        allow_origins:   CORS origins
        api_prefix:      Mount point of every controller route
        default_locale:  Locale of a request before/without LocaleMiddleware
    """

    def __init__(
        self,
        controllers: Sequence[Controller],
        translator: Translator,
        logger: ServiceLogger,
        middlewares: Sequence[Middleware] = (),
        auth_middleware: Optional[Middleware] = None,
        allow_origins: Sequence[str] = (),
        allow_headers: Sequence[str] = (),
        api_prefix: str = "/api",
        default_locale: str = "",
        host: str = "0.0.0.0",
        port: int = 8080,
    ):
        self.controllers = list(controllers)
        self.translator = translator
        self.logger = logger
        self.middlewares = tuple(middlewares)
        self.auth_middleware = auth_middleware
        self.allow_origins = list(allow_origins)
        self.allow_headers = CORS_ALLOWED_HEADERS + [
            h for h in allow_headers if h not in CORS_ALLOWED_HEADERS
        ]
        self.api_prefix = api_prefix.rstrip("/")
        self.default_locale = default_locale
        self.host = host
        self.port = port

    # ══════════════════════════════════════════════════════════════════════
    # Application assembly
    # ══════════════════════════════════════════════════════════════════════

    def build(self, lifespan: Optional[Callable] = None) -> FastAPI:
        """
        Compose every route's chain and mount it.

        Raises:
            ValueError: two routes share path + method, or a route requires
                auth but no auth middleware was configured.
        """
        app = FastAPI(
            title="msbase",
            version=__version__,
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
            lifespan=lifespan,
        )

        endpoints: Dict[str, _PathEndpoint] = {}
        for controller in self.controllers:
            for route in controller.routes():
                middlewares: List[Middleware] = [
                    m
                    for m in self.middlewares
                    if not (route.skip_request_id and isinstance(m, RequestIDMiddleware))
                ]
                if route.requires_auth:
                    if self.auth_middleware is None:
                        raise ValueError(
                            f"Route {route.method} {route.path} requires auth "
                            "but no auth middleware is configured"
                        )
                    middlewares.append(self.auth_middleware)

                full_path = f"{self.api_prefix}{route.path}"
                endpoint = endpoints.setdefault(full_path, _PathEndpoint(self, full_path))
                if route.method in endpoint.handlers:
                    raise ValueError(f"Route {route.method} {full_path} registered twice")
                endpoint.handlers[route.method] = chain_middleware(
                    self.make_handler(route.handler), self.handle_error, middlewares
                )

        for full_path, endpoint in endpoints.items():
            endpoint.method_not_allowed = chain_middleware(
                self._method_not_allowed_handler(endpoint.allowed_methods()),
                self.handle_error,
                self.middlewares,
            )
            app.add_route(full_path, endpoint, include_in_schema=False)

        # Registered last: only reached when no controller route matched
        app.add_route(
            "/{path:path}",
            _CatchAllEndpoint(
                self, chain_middleware(self._not_found, self.handle_error, self.middlewares)
            ),
            include_in_schema=False,
        )

        app.add_middleware(
            CORSMiddleware,
            allow_origins=self.allow_origins,
            allow_credentials=True,
            allow_methods=CORS_ALLOWED_METHODS,
            allow_headers=self.allow_headers,
        )
        return app

    def run(self, app: Optional[FastAPI] = None) -> None:
        """Serve until interrupted. Bind/serve failures are fatal."""
        app = app or self.build()
        self.logger.info(None, "Service running in %s:%d", self.host, self.port)
        try:
            uvicorn.run(app, host=self.host, port=self.port, log_config=None)
        except (OSError, SystemExit) as e:
            self.logger.error(None, "Failed to start server: %s", e)
            raise

    # ══════════════════════════════════════════════════════════════════════
    # Per-request plumbing
    # ══════════════════════════════════════════════════════════════════════

    def new_exchange(self, scope: Scope, receive: Receive, send: Send) -> Exchange:
        return Exchange(
            request=Request(scope, receive),
            writer=ResponseWriter(send),
            context=RequestContext(locale=self.default_locale),
        )

    async def dispatch(self, handler: Handler, scope: Scope, receive: Receive, send: Send) -> None:
        """Run a composed chain for one request; nothing escapes unrendered."""
        exchange = self.new_exchange(scope, receive, send)
        try:
            await handler(exchange)
        except Exception as e:
            await self.handle_error(exchange, e, None)

    def make_handler(self, api_func: APIFunc) -> Handler:
        """Adapt a controller APIFunc into the terminal handler of a chain."""
        is_async = inspect.iscoroutinefunction(api_func)

        async def handler(exchange: Exchange) -> None:
            try:
                if is_async:
                    response = await api_func(exchange.request, exchange.context)
                else:
                    response = await run_in_threadpool(api_func, exchange.request, exchange.context)
                if not isinstance(response, APIResponse):
                    raise InternalError(
                        context={"handler_returned": type(response).__name__}
                    )
            except Exception as e:
                await self.handle_error(exchange, e, None)
                return
            await self.write_response(exchange, response)

        return handler

    async def handle_error(
        self,
        exchange: Exchange,
        err: BaseException,
        suggested_status: Optional[int] = None,
    ) -> None:
        """
        The single place failures become HTTP responses.

        Taxonomy errors get their kind's status. Anything else gets the
        caller's suggested status (500 without one) and the generic
        internal-error message; its detail only goes to the log.
        """
        context = exchange.context
        if requires_logging(err):
            self.logger.error(
                context,
                "internal error: %s | Context: %s",
                err,
                getattr(err, "context", {}),
                exc_info=err,
            )

        http_error = map_to_http(err, context.locale, self.translator)
        status = http_error.status_code
        if find_kind(err) is None and suggested_status is not None:
            status = suggested_status

        await self.write_response(
            exchange, APIResponse(status=status, content={"error": http_error.message})
        )

    async def write_response(self, exchange: Exchange, response: APIResponse) -> None:
        if exchange.writer.headers_sent:
            self.logger.warning(
                exchange.context,
                "Response %d dropped: status %s already sent",
                response.status,
                exchange.writer.status_code,
            )
            return
        await exchange.writer.write_response(response)

    # ══════════════════════════════════════════════════════════════════════
    # Routing fallbacks
    # ══════════════════════════════════════════════════════════════════════

    async def _not_found(self, exchange: Exchange) -> None:
        request = exchange.request
        await self.handle_error(
            exchange,
            LocalizableError(
                NOT_FOUND_KEY,
                NotFoundError(f"no route for {request.method} {request.url.path}"),
            ),
        )

    def _method_not_allowed_handler(self, allowed: List[str]) -> Handler:
        async def handler(exchange: Exchange) -> None:
            await self.write_response(
                exchange,
                APIResponse(
                    status=405,
                    content={
                        "error": self.translator.translate(
                            exchange.context.locale, METHOD_NOT_ALLOWED_KEY
                        )
                    },
                    headers={"Allow": ", ".join(allowed)},
                ),
            )

        return handler
