"""ASGI middleware that binds a trace-aware logger to each request."""

from gcp_logger.middleware.trace_context import GcpLoggerMiddleware, build_request_store

__all__ = ["GcpLoggerMiddleware", "build_request_store"]
