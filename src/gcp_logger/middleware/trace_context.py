"""Trace context middleware — per-request trace identity + logger.

Learn: For every request this middleware
1. reads X-Cloud-Trace-Context and X-Request-ID (both optional),
2. builds a TraceContext, generating whatever is missing,
3. derives a logger carrying the Cloud Logging correlation fields,
4. runs the rest of the app inside a request scope holding both,
5. echoes X-Request-ID on the response.

Handlers then use get_request_logger() and every entry lands under the
right trace in Cloud Logging. request.state.request_id / trace_id are set
too, for code that would rather not import gcp_logger.context.

Errors raised further down are not caught here; they propagate to
Starlette's exception handling after the scope has unwound.
"""

from collections.abc import Mapping
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from gcp_logger.config import Settings, get_settings
from gcp_logger.context import RequestStore, TraceContext, run_in_scope
from gcp_logger.logger import Logger
from gcp_logger.trace_header import (
    CLOUD_TRACE_HEADER,
    REQUEST_ID_HEADER,
    SPAN_ID_FIELD,
    TRACE_FIELD,
    TRACE_SAMPLED_FIELD,
    format_trace_field,
    generate_request_id,
    generate_trace_id,
    parse_cloud_trace_header,
)


def build_request_store(
    headers: Mapping[str, str],
    base_logger: Logger,
    project_id: str,
) -> RequestStore:
    """Resolve identifiers from inbound headers and decorate the logger.

    Framework-independent: `headers` only needs a case-insensitive .get(),
    like Starlette's Headers.
    """
    parsed = parse_cloud_trace_header(headers.get(CLOUD_TRACE_HEADER))
    existing_request_id = headers.get(REQUEST_ID_HEADER)

    trace = TraceContext(
        trace_id=parsed.trace_id if parsed else generate_trace_id(),
        span_id=parsed.span_id if parsed else "0",
        request_id=existing_request_id or generate_request_id(),
        trace_sampled=parsed.trace_sampled if parsed else False,
    )

    context_logger = base_logger.with_context(
        {
            TRACE_FIELD: format_trace_field(project_id, trace.trace_id),
            SPAN_ID_FIELD: trace.span_id,
            TRACE_SAMPLED_FIELD: trace.trace_sampled,
            "requestId": trace.request_id,
        }
    )
    return RequestStore(trace=trace, logger=context_logger)


class GcpLoggerMiddleware(BaseHTTPMiddleware):
    """Bind a trace-aware logger to every request.

    Usage:
        app.add_middleware(GcpLoggerMiddleware, logger=create_logger())
    """

    def __init__(
        self,
        app: ASGIApp,
        logger: Logger,
        project_id: Optional[str] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(app)
        self.base_logger = logger
        if settings is None:
            settings = get_settings()
        self.project_id = settings.resolve_project_id(project_id)

    async def dispatch(self, request: Request, call_next) -> Response:
        store = build_request_store(request.headers, self.base_logger, self.project_id)

        # Attach for handlers / other middleware
        request.state.request_id = store.trace.request_id
        request.state.trace_id = store.trace.trace_id

        response: Response = await run_in_scope(store, call_next, request)

        # Echo back for client correlation
        response.headers[REQUEST_ID_HEADER] = store.trace.request_id
        return response
