"""JSON logging for feed ingestion runs.

Every record is emitted as one JSON object. Keyword arguments passed to an
``ExecutionLogger`` call (``feed_url=...``, ``source_name=...``) become
top-level keys of that object next to the execution id and component.
"""

import json
import logging
import sys
from collections.abc import MutableMapping
from datetime import UTC, datetime
from typing import Any

# Attributes every LogRecord carries; anything else on a record is context
_RECORD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime"}

# Keyword arguments understood by Logger.log itself
_LOGGING_KWARGS = frozenset({"exc_info", "stack_info", "stacklevel", "extra"})


class StructuredFormatter(logging.Formatter):
    """Formats a record and its context attributes as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRIBUTES and not key.startswith("_")
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


class ExecutionLogger(logging.LoggerAdapter):
    """Component logger that stamps every record with the execution context.

    ``logger.warning("Source failed", source_name="Alpha")`` logs through
    ``feed_ingest.<component>`` with ``execution_id``, ``component`` and
    ``source_name`` attached to the record.
    """

    def __init__(self, execution_id: str, component: str = "main"):
        super().__init__(
            logging.getLogger(f"feed_ingest.{component}"),
            {"execution_id": execution_id, "component": component},
        )
        self.execution_id = execution_id
        self.component = component
        self.start_time: datetime | None = None

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        context = {
            key: kwargs.pop(key) for key in list(kwargs) if key not in _LOGGING_KWARGS
        }
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {}), **context}
        return msg, kwargs

    def log_execution_start(self, **context) -> None:
        self.start_time = datetime.now(UTC)
        self.info(
            f"Starting {self.component} execution",
            execution_start=self.start_time.isoformat(),
            **context,
        )

    def log_execution_end(self, success: bool = True, **context) -> None:
        """Log the end of the run with its duration since ``log_execution_start``."""
        end_time = datetime.now(UTC)
        duration = (end_time - self.start_time).total_seconds() if self.start_time else None
        self.log(
            logging.INFO if success else logging.ERROR,
            f"Completed {self.component} execution",
            execution_end=end_time.isoformat(),
            execution_duration_seconds=duration,
            execution_success=success,
            **context,
        )

    def log_feed_processing(
        self, feed_url: str, items_count: int, warnings_count: int = 0
    ) -> None:
        self.info(
            f"Parsed {items_count} items from feed",
            feed_url=feed_url,
            items_count=items_count,
            warnings_count=warnings_count,
        )

    def log_metrics(self, metrics: dict[str, Any]) -> None:
        self.info("Refresh metrics", metrics=metrics)


def setup_structured_logging(log_level: str = "INFO") -> None:
    """Route all logging to stdout as JSON at ``log_level``.

    Lambda captures stdout into CloudWatch Logs, one event per line.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers[:] = [handler]
    root_logger.setLevel(level)

    logging.getLogger("feed_ingest").setLevel(level)
    # Connection pool chatter drowns out per-source messages
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)


def create_execution_logger(
    component: str, execution_id: str | None = None
) -> ExecutionLogger:
    """Create a component logger, generating an execution id when none is given."""
    if not execution_id:
        execution_id = f"exec_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"
    return ExecutionLogger(execution_id, component)
