"""Logging configuration for structured logging."""
import logging
import sys


def configure_structured_logging(level: str = "INFO"):
    """Configure structured logging for applications embedding the engine."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(message)s",  # JSON already formatted
        stream=sys.stdout,
    )

    # Prometheus client chatter is not useful next to evaluation logs
    logging.getLogger("prometheus_client").setLevel(logging.WARNING)
