"""gcp-logger — request-scoped, trace-correlated logging for Cloud Run.

Reads Google's X-Cloud-Trace-Context header, keeps the request's trace
identity in a ContextVar, and hands handlers a structlog-backed logger
whose entries Cloud Logging groups under the originating trace.

    from gcp_logger import create_logger, get_request_logger
    from gcp_logger.middleware import GcpLoggerMiddleware

    app.add_middleware(GcpLoggerMiddleware, logger=create_logger())
"""

from gcp_logger.config import Settings, get_settings
from gcp_logger.context import (
    RequestStore,
    TraceContext,
    get_active_store,
    get_request_logger,
    get_trace_context,
    request_scope,
    run_in_scope,
)
from gcp_logger.errors import serialize_error
from gcp_logger.logger import Logger, StructlogLogger, create_logger

__version__ = "0.1.0"

__all__ = [
    "Logger",
    "RequestStore",
    "Settings",
    "StructlogLogger",
    "TraceContext",
    "create_logger",
    "get_active_store",
    "get_request_logger",
    "get_settings",
    "get_trace_context",
    "request_scope",
    "run_in_scope",
    "serialize_error",
]
