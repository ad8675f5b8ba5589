import json
import logging
import sys
from datetime import datetime
from app.core.config import settings

_RESERVED_ATTRS = {
    "args",
    "asctime",
    "created",
    "exc_info",
    "exc_text",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "message",
    "msg",
    "name",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "stack_info",
    "taskName",
    "thread",
    "threadName",
}


class CorrelationIdFilter(logging.Filter):
    """Exposes the correlation id to plain-text format strings."""

    def filter(self, record):
        from app.core.context import get_correlation_id

        record.correlationId = get_correlation_id()
        return True


class JSONFormatter(logging.Formatter):
    """
    Formatter that outputs JSON strings after parsing the LogRecord.
    """

    def format(self, record):
        from app.core.context import get_correlation_id, get_repository_call

        log_obj = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "funcName": record.funcName,
            "lineNo": record.lineno,
            "correlationId": get_correlation_id(),
        }

        if record.exc_info:
            log_obj["exc_info"] = self.formatException(record.exc_info)

        # Merge extra attributes (structured logging)
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and key not in log_obj:
                log_obj[key] = value

        # Repository call in flight, unless the record carries its own
        call = get_repository_call()
        if call is not None:
            log_obj.setdefault("entity", call[0])
            log_obj.setdefault("operation", call[1])

        return json.dumps(log_obj, ensure_ascii=False, default=str)


def setup_logging(level: str = None, json_logs: bool = None):
    """
    Eq. to logging.basicConfig but with JSONFormatter (unless LOG_JSON is off).
    """
    level = level or settings.LOG_LEVEL
    json_logs = settings.LOG_JSON if json_logs is None else json_logs

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    if json_logs:
        handler.setFormatter(JSONFormatter())
    else:
        handler.addFilter(CorrelationIdFilter())
        handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(correlationId)s | %(message)s")
        )
    root_logger.addHandler(handler)

    # Set levels for noisy libraries
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    if not settings.SQL_ECHO:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    logging.info("Logging initialized.")
