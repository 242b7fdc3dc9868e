"""
Structured logging using structlog.
Provides configurable output formats and a request-scoped logger for the catalog pipeline.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

import structlog
from structlog.stdlib import LoggerFactory


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    log_file: Optional[Union[str, Path]] = None,
    debug: bool = False
) -> None:
    """
    Set up structured logging with configurable output formats.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format (json or console)
        log_file: Optional log file path
        debug: Add call-site information to every event
    """

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if debug:
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                {
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.LINENO,
                }
            )
        )

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(getattr(logging, log_level.upper()))
        file_handler.setFormatter(logging.Formatter('%(message)s'))
        logging.getLogger().addHandler(file_handler)

    logger = structlog.get_logger(__name__)
    logger.info(
        "Logging system initialized",
        level=log_level,
        format=log_format,
        file=str(log_file) if log_file else None,
        debug=debug
    )


class RequestLogger:
    """
    Specialized logger for request pipeline steps with context management.
    """

    def __init__(self, name: str = "catalog.pipeline"):
        self.logger = structlog.get_logger(name)
        self.context = {}

    def bind_context(self, **kwargs) -> 'RequestLogger':
        """
        Bind context variables to the logger.

        Args:
            **kwargs: Context variables to bind

        Returns:
            Self for method chaining
        """
        self.context.update(kwargs)
        return self

    def _fields(self, **kwargs) -> dict:
        """Bound context overlaid with the event's own fields."""
        return {**self.context, **kwargs}

    def log_render(self, template: str) -> None:
        """Log a view render."""
        self.logger.debug("Rendering view", **self._fields(template=template))

    def log_redirect(self, url: str) -> None:
        """Log a redirect response."""
        self.logger.debug("Redirecting", **self._fields(url=url))

    def log_rejected(self, template: str, violations: int) -> None:
        """Log a form submission that failed validation."""
        self.logger.info(
            "Submission rejected",
            **self._fields(template=template, violations=violations)
        )

    def log_dependency_block(self, record_id: str, dependents: int) -> None:
        """Log a delete declined because dependent records exist."""
        self.logger.info(
            "Delete blocked by dependent records",
            **self._fields(record_id=record_id, dependents=dependents)
        )

    def log_not_found(self, record_id: str) -> None:
        """Log a missing target record."""
        self.logger.warning("Record not found", **self._fields(record_id=record_id))

    def log_store_operation(self, operation: str, success: bool, record_id: Optional[str] = None) -> None:
        """Log a write against the document store."""
        level = "info" if success else "warning"
        getattr(self.logger, level)(
            "Store operation",
            **self._fields(operation=operation, success=success, record_id=record_id)
        )
