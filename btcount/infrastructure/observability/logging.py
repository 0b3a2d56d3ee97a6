"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def __init__(self, *args: Any, service_name: str = "btcount", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service_name


def setup_logging(level: str = "INFO", fmt: str = "json", service_name: str = "btcount") -> None:
    """Configure root logging; ``fmt`` is "json" or "text" """
    if fmt == "json":
        formatter: logging.Formatter = CustomJsonFormatter(
            "%(timestamp)s %(level)s %(name)s %(message)s",
            service_name=service_name,
        )
    elif fmt == "text":
        formatter = logging.Formatter(TEXT_FORMAT)
    else:
        raise ValueError(f"unknown log format {fmt!r} (allowed are: 'json', 'text')")

    logger = logging.getLogger()
    logger.setLevel(level.upper())

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_sync(till: datetime, inserted: int, duration_ms: float) -> None:
    """Log structured stat sync outcome"""
    logging.getLogger("btcount.worker").info(
        "Stat sync completed",
        extra={
            "step": "stat_sync",
            "till": till.isoformat(),
            "inserted_stats": inserted,
            "duration_ms": duration_ms,
        },
    )
