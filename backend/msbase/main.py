"""
msbase — Application Factory
=============================

What:  Wires settings, translations, logger, middlewares and controllers
       into a runnable ASGI application.
Why:   Centralizes startup wiring in one place; services add their own
       controllers (and auth verifier) through create_app().
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   uvicorn (`uvicorn msbase.main:app`) or `python -m msbase.main`.
When:  Once at process start; translations and routes are fixed afterwards.

Middleware Chain:
    ┌────────────┐ ┌──────────┐ ┌───────────┐ ┌────────────────────┐
    │ Request ID │→│  Locale  │→│  Logging  │→│ Auth (flagged only)│→ handler
    └────────────┘ └──────────┘ └───────────┘ └────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Log locales and route prefix
    Shutdown:
    1. Log shutdown complete
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional, Sequence

from fastapi import FastAPI

from msbase.config import Settings, settings as default_settings
from msbase.logger import RequestIDLogFilter, ServiceLogger
from msbase.middleware import (
    AuthMiddleware,
    LocaleMiddleware,
    RequestIDMiddleware,
    RequestLoggingMiddleware,
)
from msbase.middleware.auth import Verifier
from msbase.routes.health import HealthController
from msbase.routing import Controller
from msbase.server import Server
from msbase.translator import Translator

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s [%(request_id)s] %(message)s

    Records logged outside a request get "-" as request ID
    (RequestIDLogFilter), so the format never raises KeyError.
    """
    handler = logging.StreamHandler(sys.stdout)  # Docker captures stdout
    handler.addFilter(RequestIDLogFilter())

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s [%(request_id)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[handler],
        force=True,  # Override any existing logging config
    )

    # uvicorn's own access log duplicates msbase.access
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def build_server(
    config: Settings,
    controllers: Optional[Sequence[Controller]] = None,
    auth_verifier: Optional[Verifier] = None,
    translator: Optional[Translator] = None,
    service_logger: Optional[ServiceLogger] = None,
) -> Server:
    """
    Assemble a Server from settings.

    Raises:
        TranslationLoadError: a configured locale file is missing or invalid.
    """
    translator = translator or Translator.from_directory(
        config.locales_dir, config.locales_list
    )
    service_logger = service_logger or ServiceLogger()

    if controllers is None:
        controllers = [HealthController(translator=translator, logger=service_logger)]

    middlewares = [
        RequestIDMiddleware(header_name=config.request_id_header),
        LocaleMiddleware(
            header_name=config.language_header, default_locale=config.default_locale
        ),
        RequestLoggingMiddleware(service_logger),
    ]
    auth_middleware = AuthMiddleware(auth_verifier) if auth_verifier is not None else None

    return Server(
        controllers=controllers,
        translator=translator,
        logger=service_logger,
        middlewares=middlewares,
        auth_middleware=auth_middleware,
        allow_origins=config.cors_origins_list,
        allow_headers=[config.request_id_header, config.language_header],
        api_prefix=config.api_prefix,
        default_locale=config.default_locale,
        host=config.host,
        port=config.port,
    )


def create_app(
    config: Optional[Settings] = None,
    controllers: Optional[Sequence[Controller]] = None,
    auth_verifier: Optional[Verifier] = None,
    translator: Optional[Translator] = None,
) -> FastAPI:
    """
    Create and configure the ASGI application.

    Why factory (not module-level wiring only):
        Tests build fresh apps with their own controllers and translation
        tables without touching the module-level instance.
    """
    config = config or default_settings
    server = build_server(config, controllers, auth_verifier, translator)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        # ── Startup ───────────────────────────────────────────────────────
        setup_logging(config.log_level)
        logger.info("msbase starting up (locales: %s)", ", ".join(sorted(server.translator.locales)))
        logger.info("Routes mounted under %s", config.api_prefix or "/")

        yield  # Application runs here

        # ── Shutdown ──────────────────────────────────────────────────────
        logger.info("Shutdown complete.")

    application = server.build(lifespan=lifespan)
    application.state.server = server
    return application


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `msbase.main:app` to be importable
app = create_app()


if __name__ == "__main__":
    setup_logging(default_settings.log_level)
    app.state.server.run(app)
