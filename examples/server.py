#!/usr/bin/env python3
"""
Demo FastAPI server for GcpLoggerMiddleware.

Run with: uvicorn examples.server:app --port 3000
      or: python examples/server.py

Try:
    curl http://localhost:3000/
    curl http://localhost:3000/debug
    curl -H "X-Cloud-Trace-Context: 105445aa7843bc8bf206b12000100000/1;o=1" http://localhost:3000/debug

Requires: pip install -e ".[examples]"
"""

import asyncio
import os
from datetime import datetime, timezone

from fastapi import FastAPI, Request

from gcp_logger import create_logger, get_request_logger, get_trace_context
from gcp_logger.middleware import GcpLoggerMiddleware

logger = create_logger()

app = FastAPI(title="gcp-logger demo")
# Project id: GOOGLE_CLOUD_PROJECT, then GCLOUD_PROJECT, else "unknown-project"
app.add_middleware(GcpLoggerMiddleware, logger=logger)


@app.get("/")
async def index():
    get_request_logger().info("Index requested")
    return {
        "message": "gcp-logger middleware demo",
        "endpoints": {
            "/": "this page",
            "/debug": "show the resolved trace context",
            "/log-test": "emit one entry per level",
            "/error-test": "log a caught exception",
            "/async-test": "check context survives an await",
        },
    }


@app.get("/debug")
async def debug(request: Request):
    get_request_logger().info("Debug endpoint called")
    trace = get_trace_context()
    return {
        "traceContext": {
            "traceId": trace.trace_id,
            "spanId": trace.span_id,
            "requestId": trace.request_id,
            "traceSampled": trace.trace_sampled,
        },
        "requestState": {
            "requestId": request.state.request_id,
            "traceId": request.state.trace_id,
        },
        "headers": {
            "X-Cloud-Trace-Context": request.headers.get("X-Cloud-Trace-Context", "(not provided)"),
            "X-Request-ID": request.headers.get("X-Request-ID", "(not provided)"),
        },
    }


@app.get("/log-test")
async def log_test():
    log = get_request_logger()
    log.trace("trace level entry")
    log.debug("debug level entry")
    log.info("info level entry")
    log.warn("warn level entry")
    log.with_metadata(
        {
            "userId": "user-123",
            "action": "test",
            "requestedAt": datetime.now(timezone.utc).isoformat(),
        }
    ).info("entry with metadata")
    return {"message": "Logged one entry per level; check the server output"}


@app.get("/error-test")
async def error_test():
    try:
        raise RuntimeError("test error")
    except RuntimeError as exc:
        get_request_logger().with_error(exc).error("Caught an error")
    return {"message": "Error entry logged"}


@app.get("/async-test")
async def async_test():
    before = get_trace_context()
    get_request_logger().info("Starting async work")

    await asyncio.sleep(0.1)

    after = get_trace_context()
    get_request_logger().info("Async work finished")

    preserved = before.trace_id == after.trace_id and before.request_id == after.request_id
    return {
        "contextPreserved": preserved,
        "before": {"traceId": before.trace_id, "requestId": before.request_id},
        "after": {"traceId": after.trace_id, "requestId": after.request_id},
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", "3000")))
