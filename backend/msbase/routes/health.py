"""
msbase — Health Check Controller
=================================

What:  GET {api_prefix}/health, a liveness probe for monitoring.
How:   Exempt from the request ID requirement so load balancers and
       orchestrators can probe it without custom headers. Locale and
       access logging still apply.
"""

import time
from typing import List

from pydantic import BaseModel, Field
from starlette.requests import Request

from msbase import __version__
from msbase.context import RequestContext
from msbase.response import APIResponse
from msbase.routing import CommonController, Route


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status")
    version: str = Field(description="Application version")
    uptime_seconds: float = Field(description="Seconds since the controller was created")


class HealthController(CommonController):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._start_time = time.time()

    def routes(self) -> List[Route]:
        return [
            Route(
                path="/health",
                method="GET",
                handler=self.health_check,
                skip_request_id=True,
            )
        ]

    async def health_check(self, request: Request, context: RequestContext) -> APIResponse:
        return APIResponse(
            status=200,
            content=HealthResponse(
                status="healthy",
                version=__version__,
                uptime_seconds=round(time.time() - self._start_time, 2),
            ),
        )
