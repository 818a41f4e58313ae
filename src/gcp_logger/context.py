"""Request-scoped context — the active trace + logger for the current request.

Learn: A ContextVar holds one RequestStore per logical request. asyncio
copies the current context into every Task it creates, and each thread
has its own context, so:

- code after an `await` sees the same store it saw before
- tasks spawned inside the scope (gather, create_task, TaskGroup) inherit it
- asyncio.to_thread() carries it into the worker thread
- concurrent requests never see each other's store

Handlers just call get_request_logger() / get_trace_context() — no need to
pass the request around. Outside a request both return None.
"""

import inspect
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, Optional, TypeVar

from gcp_logger.logger import Logger

T = TypeVar("T")


@dataclass(frozen=True)
class TraceContext:
    """Tracing identity of one request."""

    trace_id: str  # 32 lowercase hex chars
    span_id: str  # decimal digits, kept as text
    request_id: str
    trace_sampled: bool


@dataclass(frozen=True)
class RequestStore:
    """What the middleware binds for the lifetime of one request."""

    trace: TraceContext
    logger: Logger


_request_store: ContextVar[Optional[RequestStore]] = ContextVar(
    "gcp_logger_request_store", default=None
)


@contextmanager
def request_scope(store: RequestStore) -> Iterator[RequestStore]:
    """Bind `store` for the body of the `with` block, then restore the previous one."""
    token = _request_store.set(store)
    try:
        yield store
    finally:
        _request_store.reset(token)


async def _await_in_scope(store: RequestStore, awaitable: Awaitable[T]) -> T:
    with request_scope(store):
        return await awaitable


def run_in_scope(store: RequestStore, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Call `fn(*args, **kwargs)` with `store` as the active request store.

    Sync callables run and return directly. If `fn` returns a coroutine
    (an async function, or a lambda returning one), a coroutine is returned
    that keeps the store bound while awaiting it:

        result = run_in_scope(store, compute)
        response = await run_in_scope(store, call_next, request)

    Any other return value, Futures and Tasks included, comes back as the
    same object. Exceptions propagate unchanged.
    """
    with request_scope(store):
        result = fn(*args, **kwargs)
    if inspect.iscoroutine(result):
        return _await_in_scope(store, result)
    return result


def get_active_store() -> Optional[RequestStore]:
    """The store bound by the innermost enclosing scope, or None."""
    return _request_store.get()


def get_request_logger() -> Optional[Logger]:
    """Logger carrying the current request's trace fields, or None outside a request.

        log = get_request_logger()
        if log:
            log.info("processing order", order_id=order_id)
    """
    store = _request_store.get()
    return store.logger if store else None


def get_trace_context() -> Optional[TraceContext]:
    """Current request's TraceContext, or None outside a request."""
    store = _request_store.get()
    return store.trace if store else None
