"""Cloud Trace header codec — parse and generate request identifiers.

Learn: Google's front ends (Cloud Run, App Engine, the HTTPS load balancer)
attach an X-Cloud-Trace-Context header to every inbound request:

    X-Cloud-Trace-Context: TRACE_ID/SPAN_ID;o=OPTIONS

- TRACE_ID: 32 hex characters (128 bits)
- SPAN_ID:  decimal digits, may exceed 64 bits so it stays a string
- OPTIONS:  1 = sampled, 0 = not sampled

Cloud Logging correlates a log entry with its trace when the entry carries
"logging.googleapis.com/trace" = "projects/<project>/traces/<trace_id>".

See https://cloud.google.com/trace/docs/trace-context
"""

import re
import uuid
from dataclasses import dataclass
from typing import Optional

CLOUD_TRACE_HEADER = "X-Cloud-Trace-Context"
REQUEST_ID_HEADER = "X-Request-ID"

# Special LogEntry keys recognised by the Cloud Logging agent
TRACE_FIELD = "logging.googleapis.com/trace"
SPAN_ID_FIELD = "logging.googleapis.com/spanId"
TRACE_SAMPLED_FIELD = "logging.googleapis.com/trace_sampled"

_STRICT_RE = re.compile(r"([a-fA-F0-9]{32})/([0-9]+)(?:;o=([01]))?")
_TRACE_ID_PREFIX_RE = re.compile(r"([a-fA-F0-9]{32})")


@dataclass(frozen=True)
class ParsedTraceHeader:
    """Identifiers recovered from an X-Cloud-Trace-Context value."""

    trace_id: str
    span_id: str
    trace_sampled: bool


def parse_cloud_trace_header(header: Optional[str]) -> Optional[ParsedTraceHeader]:
    """Parse an X-Cloud-Trace-Context header value.

    Returns None when the header is missing, empty, or has no usable
    trace id. Malformed input never raises — the caller just generates
    fresh identifiers instead.

    If the full grammar doesn't match but the value still starts with a
    32-hex trace id, that id is kept with span "0" and sampling off.

        >>> parse_cloud_trace_header("105445aa7843bc8bf206b12000100000/1;o=1")
        ParsedTraceHeader(trace_id='105445aa7843bc8bf206b12000100000', span_id='1', trace_sampled=True)
    """
    if not header:
        return None

    match = _STRICT_RE.fullmatch(header)
    if match is None:
        loose = _TRACE_ID_PREFIX_RE.match(header)
        if loose is None:
            return None
        return ParsedTraceHeader(
            trace_id=loose.group(1).lower(),
            span_id="0",
            trace_sampled=False,
        )

    return ParsedTraceHeader(
        trace_id=match.group(1).lower(),
        span_id=match.group(2),
        trace_sampled=match.group(3) == "1",
    )


def format_trace_field(project_id: str, trace_id: str) -> str:
    """Build the value Cloud Logging expects in logging.googleapis.com/trace."""
    return f"projects/{project_id}/traces/{trace_id}"


def generate_request_id() -> str:
    """New UUID4 request id (uuid4 reads from os.urandom)."""
    return str(uuid.uuid4())


def generate_trace_id() -> str:
    """New 32-char lowercase hex trace id."""
    return uuid.uuid4().hex
