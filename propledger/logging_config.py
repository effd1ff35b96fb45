"""Logging setup for the API process.

Everything under the ``propledger`` logger namespace propagates to the
application logger, so a single handler covers request code and services.
"""

import logging
import sys

from flask.logging import default_handler
from pythonjsonlogger import jsonlogger

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def build_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return jsonlogger.JsonFormatter(JSON_FORMAT)
    return logging.Formatter(TEXT_FORMAT)


def configure_logging(app) -> None:
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)

    app.logger.removeHandler(default_handler)
    for handler in list(app.logger.handlers):
        if getattr(handler, "_propledger", False):
            app.logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(build_formatter(app.config.get("LOG_FORMAT", "json")))
    handler._propledger = True

    app.logger.addHandler(handler)
    app.logger.setLevel(level)

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("werkzeug").setLevel(logging.WARNING)
