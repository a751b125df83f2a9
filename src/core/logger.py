import json
import logging
import logging.config
import sys

from core.config import Settings


class JsonFormatter(logging.Formatter):
    """
    Formatter for logging in JSON format.
    """

    def format(self, record):
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_record)


FORMATTERS = {
    # Console-friendly, readable text format.
    "default": {
        "format": "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
        "datefmt": "%Y-%m-%d %H:%M:%S",
    },
    # JSON structured, machine-parsable, suitable for aggregation (ELK, CloudWatch, etc.)
    "json": {
        "()": JsonFormatter,
        "datefmt": "%Y-%m-%dT%H:%M:%S%z",
    },
}


def build_logging_config(level: str, formatter: str = "default") -> dict:
    """
    Build a dictConfig for the given root level and formatter name.
    """
    handler = {
        "class": "logging.StreamHandler",
        "stream": sys.stdout,
        "formatter": formatter,
    }

    def logger(logger_level: str) -> dict:
        return {"level": logger_level, "handlers": ["console"], "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {formatter: FORMATTERS[formatter]},
        "handlers": {"console": handler},
        "loggers": {
            # Root Logger: Catches everything not caught by specific loggers
            "root": {"level": level, "handlers": ["console"]},
            # Application Loggers
            "main": logger(level),
            "api": logger(level),
            "core": logger(level),
            "gallery": logger(level),
            # Uvicorn (FastAPI Server) Loggers
            "uvicorn": logger("INFO"),
            "uvicorn.access": logger("INFO"),
            "uvicorn.error": logger("INFO"),
            # External Libraries Noise Reduction
            "PIL": logger("WARNING"),
        },
    }


def setup_logging(settings: Settings):
    """
    Set up logging configuration based on the environment.
    """
    env = settings.ENVIRONMENT.lower()
    formatter = "json" if env == "production" else "default"

    logging.config.dictConfig(build_logging_config(settings.LOG_LEVEL.upper(), formatter))

    logger = logging.getLogger("core")
    logger.info(f"Logging setup complete for {env} environment with level {settings.LOG_LEVEL}")
