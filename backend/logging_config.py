import logging
import logging.config
from typing import Dict, Optional


LOGGING_CONFIG: Dict = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "level": "DEBUG",
        }
    },
    "root": {
        "handlers": ["console"],
        "level": "INFO",
    },
    "loggers": {
        # requests logs every connection at DEBUG; keep it quiet unless asked.
        "urllib3": {"level": "WARNING"},
    },
}


def configure_logging(level: Optional[str] = None) -> None:
    config = dict(LOGGING_CONFIG)
    if level:
        config["root"] = {**LOGGING_CONFIG["root"], "level": level.upper()}
    logging.config.dictConfig(config)
