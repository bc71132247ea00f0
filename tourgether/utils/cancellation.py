"""Cancel in-flight work when the HTTP client goes away"""
import asyncio
import logging
from typing import Awaitable, TypeVar
from fastapi import Request

logger = logging.getLogger(__name__)

T = TypeVar("T")

DISCONNECT_POLL_SECONDS = 0.5


class ClientDisconnected(Exception):
    """The caller hung up before the work finished"""


async def run_cancellable(request: Request, work: Awaitable[T], poll_seconds: float = DISCONNECT_POLL_SECONDS) -> T:
    """
    Await `work`, cancelling it if the client disconnects first

    Only call this after the request body has been read.

    Raises:
        ClientDisconnected: When the client disconnected and the work was cancelled
    """
    task = asyncio.ensure_future(work)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=poll_seconds)
            if done:
                return task.result()
            if await request.is_disconnected():
                logger.info(f"Client disconnected from {request.url.path}, cancelling pipeline")
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
                raise ClientDisconnected(request.url.path)
    finally:
        if not task.done():
            task.cancel()
