"""Test fixtures — a JSON logger writing to memory and a FastAPI app wired with the middleware.

Learn: create_logger(environment="production", stream=StringIO()) gives
us the exact JSON Cloud Logging would receive, so tests assert on parsed
entries instead of mocking the logger.

The `client` fixture drives the app in-process through httpx's
ASGITransport — no server, no sockets.
"""

import asyncio
import io
import json

import pytest
import pytest_asyncio
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from httpx import ASGITransport, AsyncClient

from gcp_logger import create_logger, get_request_logger, get_trace_context
from gcp_logger.config import Settings
from gcp_logger.middleware import GcpLoggerMiddleware

# Env vars the package reads; cleared so the host environment can't leak in
GCP_ENV_VARS = (
    "GCP_LOGGER_ENVIRONMENT",
    "GOOGLE_CLOUD_PROJECT",
    "GCLOUD_PROJECT",
    "K_SERVICE",
    "K_REVISION",
    "K_CONFIGURATION",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in GCP_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def log_stream():
    return io.StringIO()


@pytest.fixture()
def base_logger(log_stream):
    return create_logger(environment="production", stream=log_stream)


@pytest.fixture()
def read_entries(log_stream):
    """Return a callable that parses every JSON line written so far."""

    def _read():
        return [json.loads(line) for line in log_stream.getvalue().splitlines() if line]

    return _read


def trace_payload():
    trace = get_trace_context()
    if trace is None:
        return None
    return {
        "trace_id": trace.trace_id,
        "span_id": trace.span_id,
        "request_id": trace.request_id,
        "trace_sampled": trace.trace_sampled,
    }


def build_app(base_logger, project_id="test-project", settings=None) -> FastAPI:
    """Small app exercising every way handler code can reach the context."""
    app = FastAPI()
    app.add_middleware(
        GcpLoggerMiddleware,
        logger=base_logger,
        project_id=project_id,
        settings=settings or Settings(),
    )

    @app.get("/trace")
    async def trace(request: Request):
        return {
            "trace": trace_payload(),
            "state": {
                "request_id": request.state.request_id,
                "trace_id": request.state.trace_id,
            },
        }

    @app.get("/log")
    async def log(message: str = "handled"):
        get_request_logger().info(message)
        return {"ok": True}

    @app.get("/sync-trace")
    def sync_trace():
        # Plain def endpoints run in Starlette's threadpool
        return {"trace": trace_payload()}

    @app.get("/slow")
    async def slow(delay: float = 0.0):
        before = get_trace_context().trace_id
        await asyncio.sleep(delay)
        after = get_trace_context().trace_id
        get_request_logger().info("slow request done", delay=delay)
        return {"before": before, "after": after}

    @app.get("/nested")
    async def nested():
        seen = [get_trace_context().trace_id]

        async def level(depth: int):
            await asyncio.sleep(0.005)
            seen.append(get_trace_context().trace_id)
            if depth < 3:
                await level(depth + 1)

        await level(1)
        return {"seen": seen}

    @app.get("/fan-out")
    async def fan_out():
        async def branch(delay: float):
            await asyncio.sleep(delay)
            return get_trace_context().trace_id

        results = await asyncio.gather(branch(0.01), branch(0.0), branch(0.005))
        in_thread = await asyncio.to_thread(lambda: get_trace_context().trace_id)
        return {"branches": list(results), "thread": in_thread}

    @app.get("/caught-error")
    async def caught_error():
        before = get_trace_context().trace_id
        try:
            raise ValueError("intentional")
        except ValueError as exc:
            inside = get_trace_context().trace_id
            get_request_logger().with_error(exc).error("caught error")
        return JSONResponse({"before": before, "inside": inside}, status_code=500)

    @app.get("/boom")
    async def boom():
        get_request_logger().error("about to fail")
        raise RuntimeError("unhandled")

    return app


@pytest.fixture()
def app(base_logger):
    return build_app(base_logger)


@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def make_app():
    """Factory for apps with non-default project / settings."""
    return build_app


@pytest.fixture()
def client_factory():
    def _make(app):
        return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")

    return _make
