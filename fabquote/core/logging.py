import logging
import sys
from logging.config import dictConfig

from fabquote.core.config import APP_ENV, LOG_LEVEL

# attributes every LogRecord carries; anything else came in through `extra=`
_RECORD_FIELDS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class ContextFormatter(logging.Formatter):
    """Appends `extra={...}` fields to the line as key=value pairs."""

    def format(self, record):
        line = super().format(record)
        context = {
            k: v for k, v in vars(record).items()
            if k not in _RECORD_FIELDS and not k.startswith("_")
        }
        if not context:
            return line
        return line + " | " + " ".join(f"{k}={v}" for k, v in sorted(context.items()))


def setup_logging():
    level = LOG_LEVEL or ("DEBUG" if APP_ENV == "development" else "INFO")

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,

            "formatters": {
                "context": {
                    "()": ContextFormatter,
                    "fmt": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                },
                # request_logging_middleware passes these fields itself
                "access": {
                    "format": (
                        "%(asctime)s | ACCESS | %(message)s | %(client_addr)s | %(user_id)s | "
                        "%(method)s %(path)s | %(status_code)s | %(process_time_ms)sms"
                    ),
                },
            },

            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "stream": sys.stdout,
                    "formatter": "context",
                },
                "access_console": {
                    "class": "logging.StreamHandler",
                    "stream": sys.stdout,
                    "formatter": "access",
                },
            },

            "loggers": {
                "access": {
                    "handlers": ["access_console"],
                    "level": "INFO",
                    "propagate": False,
                },
                # one INFO line per outbound request otherwise
                "httpx": {"level": "WARNING"},
                "httpcore": {"level": "WARNING"},
                "sqlalchemy.engine": {"level": "WARNING"},
                "apscheduler": {"level": "INFO"},
            },

            "root": {
                "level": level,
                "handlers": ["console"],
            },
        }
    )
