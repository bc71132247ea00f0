"""Whole-request timeout middleware"""
import asyncio
import logging
from fastapi import Request
from fastapi.responses import JSONResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "Request timed out. Please try again."


class RequestTimeoutMiddleware(BaseHTTPMiddleware):
    """Answers 504 when a request runs longer than timeout_seconds"""

    def __init__(self, app, timeout_seconds: float = 120):
        super().__init__(app)
        self.timeout_seconds = timeout_seconds

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await asyncio.wait_for(call_next(request), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.error(f"{request.method} {request.url.path} exceeded {self.timeout_seconds}s")
            return JSONResponse(status_code=504, content={"error": TIMEOUT_MESSAGE})
