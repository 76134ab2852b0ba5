"""Logging setup shared by the scheduler, the store and the CLI."""
import logging

import structlog


def configure_logging(level: int = logging.WARNING) -> None:
    """Configure structlog on top of the standard logging module.

    Records go through stdlib logging (stderr) so they stay out of the
    interactive console output; structlog adds ISO timestamps, the log level
    and renders the event as key=value pairs.
    """
    logging.basicConfig(level=level, format="%(message)s")
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.KeyValueRenderer(key_order=["timestamp", "level", "event"]),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
    )


logger = structlog.get_logger("ayah_review")
