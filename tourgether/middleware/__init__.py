"""Middleware modules for FastAPI application"""
from .auth import get_current_user
from .timeout import RequestTimeoutMiddleware

__all__ = ["get_current_user", "RequestTimeoutMiddleware"]
