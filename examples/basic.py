#!/usr/bin/env python3
"""
gcp-logger basics — levels, metadata, errors, context.

Run with: python examples/basic.py
Force JSON output: GCP_LOGGER_ENVIRONMENT=production python examples/basic.py

Requires: pip install -e .
"""

from datetime import datetime, timezone

from gcp_logger import create_logger


def main():
    # Environment auto-detected (Cloud Run -> JSON, otherwise pretty console)
    logger = create_logger()

    logger.info("Application started")
    logger.debug("Debug information")
    logger.warn("Warning message")

    # ── Per-entry metadata ────────────────────────────────────────
    logger.with_metadata(
        {
            "userId": "12345",
            "action": "login",
            "requestedAt": datetime.now(timezone.utc).isoformat(),
        }
    ).info("User action")

    # ── Errors ────────────────────────────────────────────────────
    try:
        raise RuntimeError("Something went wrong")
    except RuntimeError as exc:
        logger.with_error(exc).error("An error occurred")

    # ── Persistent context ────────────────────────────────────────
    context_logger = logger.with_context({"requestId": "req-abc-123", "service": "api-service"})
    context_logger.info("Processing request")
    context_logger.info("Request completed")

    # ── Forced environments ───────────────────────────────────────
    create_logger(environment="production").info("This uses GCP-formatted JSON")
    create_logger(environment="development").info("This uses pretty terminal output")

    print("\n✓ Example completed")


if __name__ == "__main__":
    main()
