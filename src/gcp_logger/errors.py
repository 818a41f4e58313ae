"""Default error serializer for Logger.with_error()."""

import traceback
from typing import Any, Callable

ErrorSerializer = Callable[[BaseException], dict[str, Any]]

_MAX_CAUSE_DEPTH = 8


def serialize_error(err: BaseException, _depth: int = 0) -> dict[str, Any]:
    """Turn an exception into a JSON-safe dict.

    Follows __cause__ / __context__ so chained errors keep their origin.
    """
    data: dict[str, Any] = {
        "name": type(err).__name__,
        "message": str(err),
        "stack": "".join(
            traceback.format_exception(type(err), err, err.__traceback__, chain=False)
        ),
    }

    cause = err.__cause__ or (None if err.__suppress_context__ else err.__context__)
    if cause is not None and _depth < _MAX_CAUSE_DEPTH:
        data["cause"] = serialize_error(cause, _depth + 1)
    return data
