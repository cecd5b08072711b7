"""Centralized logging with rotation for the complaint portal."""
import logging
import os
from logging.handlers import RotatingFileHandler

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(module)s:%(lineno)d | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def _configured(handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def init_logging(app) -> logging.Logger:
    """Attach a rotating file handler and a stream handler to the application logger."""
    log_dir = app.config.get("LOG_DIR") or os.path.join(app.instance_path, "logs")
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, "complaints.log")

    level = getattr(logging, (app.config.get("LOG_LEVEL") or "INFO").upper(), logging.INFO)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    logger = logging.getLogger(app.name)
    logger.setLevel(level)
    # One app per process in production; tests build many against the same logger.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.addHandler(
        _configured(RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=5, encoding="utf-8"), level, formatter)
    )
    logger.addHandler(_configured(logging.StreamHandler(), level, formatter))
    # Propagate only under TESTING so pytest's caplog sees the records.
    logger.propagate = bool(app.config.get("TESTING"))

    logger.info("Logging initialized", extra={"path": log_path})
    return logger
