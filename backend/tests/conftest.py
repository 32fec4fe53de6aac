"""
msbase — Test Configuration (conftest.py)
==========================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Provides reusable test infrastructure (fixed translation table,
       fake ASGI transport, sample controller, HTTP test client).
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── translator:    Fixed en/es table (no files involved)
    ├── send:          Records ASGI messages sent by a ResponseWriter
    ├── make_exchange: Builds an Exchange from method/path/headers
    ├── boat_controller: Sample controller exercising every error kind
    └── test_client:   HTTPX AsyncClient talking to a freshly built app
"""

import os
from typing import Dict, List, Optional
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from starlette.requests import Request

# Keep test output quiet and independent of any local .env
os.environ["LOG_LEVEL"] = "WARNING"

from msbase.config import Settings
from msbase.context import Exchange, RequestContext
from msbase.exceptions import (
    ConflictError,
    InternalError,
    InvalidInputError,
    LocalizableError,
    NotFoundError,
)
from msbase.logger import ServiceLogger
from msbase.response import APIResponse, ResponseWriter
from msbase.routes.health import HealthController
from msbase.routing import CommonController, Route
from msbase.translator import Translator

TRANSLATIONS = {
    "en": {
        "internalerror": "Unexpected internal error",
        "notfound": "Resource not found",
        "methodnotallowed": "Method not allowed for this resource",
        "requestidrequired": "X-Request-ID can't be null",
        "unauthorized": "Authentication required",
        "invalidid": "The id in the path must be an unsigned integer",
        "boatnotfound": "Boat not found",
    },
    "es": {
        "internalerror": "Error interno inesperado",
        "notfound": "Recurso no encontrado",
        "methodnotallowed": "Método no permitido para este recurso",
        "requestidrequired": "X-Request-ID no puede ser nulo",
        "unauthorized": "Se requiere autenticación",
        "invalidid": "El id de la ruta debe ser un entero sin signo",
        "boatnotfound": "Barco no encontrado",
    },
}

VALID_TOKEN = "letmein"


# ══════════════════════════════════════════════════════════════════════════
# Fake transport
# ══════════════════════════════════════════════════════════════════════════

class SendRecorder:
    """Stands in for an ASGI `send` callable and keeps every message."""

    def __init__(self):
        self.messages: List[dict] = []

    async def __call__(self, message: dict) -> None:
        self.messages.append(message)

    @property
    def types(self) -> List[str]:
        return [m["type"] for m in self.messages]

    @property
    def status(self) -> Optional[int]:
        for m in self.messages:
            if m["type"] == "http.response.start":
                return m["status"]
        return None

    @property
    def headers(self) -> Dict[str, str]:
        for m in self.messages:
            if m["type"] == "http.response.start":
                return {k.decode("latin-1"): v.decode("latin-1") for k, v in m["headers"]}
        return {}

    @property
    def body(self) -> bytes:
        return b"".join(
            m.get("body", b"") for m in self.messages if m["type"] == "http.response.body"
        )


def make_scope(method: str = "GET", path: str = "/", headers: Optional[Dict[str, str]] = None) -> dict:
    raw = [
        (k.lower().encode("latin-1"), v.encode("latin-1"))
        for k, v in (headers or {}).items()
    ]
    return {
        "type": "http",
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "path": path,
        "raw_path": path.encode(),
        "root_path": "",
        "query_string": b"",
        "headers": raw,
        "server": ("test", 80),
        "client": ("127.0.0.1", 12345),
        "path_params": {},
    }


# ══════════════════════════════════════════════════════════════════════════
# Sample controller
# ══════════════════════════════════════════════════════════════════════════

class BoatController(CommonController):
    """In-memory controller that raises every kind of error on demand."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.boats = {1: {"id": 1, "name": "Aurora"}}

    def routes(self) -> List[Route]:
        return [
            Route("/boats/{id}", "GET", self.get_boat),
            Route("/boats", "POST", self.create_boat),
            Route("/boats/{id}/book", "POST", self.book_boat, requires_auth=True),
            Route("/boats/{id}/report", "GET", self.report),
            Route("/boom", "GET", self.boom),
            Route("/internal", "GET", self.internal),
            Route("/sync", "GET", self.sync_status),
            Route("/bad-return", "GET", self.bad_return),
            Route("/tagged", "GET", self.tagged),
        ]

    async def get_boat(self, request: Request, context: RequestContext) -> APIResponse:
        boat_id = self.read_id_from_path(request)
        boat = self.boats.get(boat_id)
        if boat is None:
            raise LocalizableError("boatnotfound", NotFoundError(f"boat {boat_id} not found"))
        return APIResponse(status=200, content=boat, headers={"X-Boat-Id": str(boat_id)})

    async def create_boat(self, request: Request, context: RequestContext) -> APIResponse:
        payload = await request.json()
        name = payload.get("name")
        if not name:
            raise InvalidInputError("name is required")
        if any(b["name"] == name for b in self.boats.values()):
            raise ConflictError(f"boat '{name}' already exists")
        boat = {"id": max(self.boats) + 1, "name": name}
        self.boats[boat["id"]] = boat
        return APIResponse(status=201, content=boat)

    async def book_boat(self, request: Request, context: RequestContext) -> APIResponse:
        boat_id = self.read_id_from_path(request)
        return APIResponse(status=200, content={"boat": boat_id, "booked_by": context.principal})

    async def report(self, request: Request, context: RequestContext) -> APIResponse:
        try:
            raise RuntimeError("report store offline")
        except RuntimeError as e:
            return self.error_response(e, context)

    async def boom(self, request: Request, context: RequestContext) -> APIResponse:
        raise RuntimeError("db password is hunter2")

    async def internal(self, request: Request, context: RequestContext) -> APIResponse:
        raise InternalError(context={"disk": "/dev/sda1"})

    def sync_status(self, request: Request, context: RequestContext) -> APIResponse:
        return APIResponse(
            status=200,
            content={"request_id": context.request_id, "locale": context.locale},
        )

    async def bad_return(self, request: Request, context: RequestContext):
        return {"not": "an APIResponse"}

    async def tagged(self, request: Request, context: RequestContext) -> APIResponse:
        try:
            int("not-a-number")
        except ValueError as e:
            raise LocalizableError("invalidid", InvalidInputError("bad number")) from e


# ══════════════════════════════════════════════════════════════════════════
# Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def translator():
    """Fixed translation table; no locale files involved."""
    return Translator(TRANSLATIONS)


@pytest.fixture
def send():
    return SendRecorder()


@pytest.fixture
def mock_logger():
    """A ServiceLogger double for asserting on log calls."""
    return MagicMock(spec=ServiceLogger)


@pytest.fixture
def make_exchange(send):
    """
    Builds an Exchange around the `send` recorder.

    Usage:
        exchange = make_exchange(headers={"X-Request-ID": "abc"})
    """

    def _make(
        method: str = "GET",
        path: str = "/",
        headers: Optional[Dict[str, str]] = None,
        context: Optional[RequestContext] = None,
    ) -> Exchange:
        return Exchange(
            request=Request(make_scope(method, path, headers)),
            writer=ResponseWriter(send),
            context=context or RequestContext(locale="en"),
        )

    return _make


@pytest.fixture
def test_settings():
    return Settings(default_locale="en", api_prefix="/api", cors_origins="http://localhost:3000")


@pytest.fixture
def verifier():
    """Accepts exactly one token; the principal is a plain dict."""

    async def _verify(token: str):
        if token == VALID_TOKEN:
            return {"user": "captain"}
        return None

    return _verify


@pytest.fixture
def boat_controller(translator):
    return BoatController(translator=translator)


@pytest_asyncio.fixture
async def test_client(test_settings, translator, boat_controller, verifier):
    """
    HTTPX AsyncClient wired to a fresh app (no server process).

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/api/health", headers={"X-Request-ID": "1"})
    """
    from msbase.main import create_app

    app = create_app(
        config=test_settings,
        controllers=[boat_controller, HealthController(translator=translator)],
        auth_verifier=verifier,
        translator=translator,
    )
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
