"""Logging for the scoring worker.

Celery's own logging setup is replaced by setup_logging (see
tasks/celery_app.py), so engine, Celery and SQLAlchemy records all go
through one handler. JSON records carry the Celery task id and name while
a task is executing, and the analysis id when passed as extra={"batch_id": ...}.
"""

import json
import logging
import sys
from datetime import datetime, timezone

from celery import current_task

from visibility_engine.core.config import settings

# Per-response and per-scope INFO lines; at batch scale they drown everything else
_CHATTY_LOGGERS = (
    "visibility_engine.analysis.scoring",
    "visibility_engine.services.metrics_store",
)

_TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(processName)s | %(name)s | %(message)s"


class JSONFormatter(logging.Formatter):
    """Structured JSON log formatter for production."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "process": record.processName,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            log_data["exception"] = self.formatException(record.exc_info)
        if hasattr(record, "batch_id"):
            log_data["batch_id"] = record.batch_id
        if current_task and current_task.request.id:
            log_data["task_id"] = current_task.request.id
            log_data["task_name"] = current_task.name
        return json.dumps(log_data, ensure_ascii=False)


def setup_logging() -> None:
    """Configure the root logger of a worker process.

    Per-response scoring lines are kept at WARNING unless APP_DEBUG is set.
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    if settings.log_json:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)

    quiet = level if settings.app_debug else max(level, logging.WARNING)
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(quiet)
    logging.getLogger("sqlalchemy.engine").setLevel(quiet)
    logging.getLogger("asyncpg").setLevel(logging.WARNING)
    # "Task ... received" / "succeeded" for every response
    logging.getLogger("celery.worker.strategy").setLevel(quiet)
    logging.getLogger("celery.app.trace").setLevel(quiet)
