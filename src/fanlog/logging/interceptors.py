"""
Interceptors for capturing standard library logging.
"""

from __future__ import annotations

import logging

from .core import LoggerFacade
from .severity import Severity

# Records from these loggers are never redirected: the CloudWatch uploader
# runs through boto, and re-logging its records would feed back into itself.
SKIPPED_PREFIXES = ("fanlog", "boto3", "botocore", "urllib3", "s3transfer")

STDLIB_LEVELS = {
    Severity.SILLY: 1,
    Severity.DEBUG: logging.DEBUG,
    Severity.VERBOSE: 15,
    Severity.INFO: logging.INFO,
    Severity.WARN: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class RedirectStdLibHandler(logging.Handler):
    """
    Redirect standard library logging events to the fanlog facade.
    Third-party ``logging`` output then passes through the same sinks.
    """

    def __init__(self, logger: LoggerFacade):
        super().__init__()
        self.logger = logger

    def emit(self, record: logging.LogRecord) -> None:
        try:
            if record.name.startswith(SKIPPED_PREFIXES):
                return
            msg = self.format(record)
            self.logger.log(Severity.from_stdlib(record.levelno), msg, logger=record.name)
        except Exception:
            self.handleError(record)


def intercept_stdlib_logging(logger: LoggerFacade) -> RedirectStdLibHandler:
    """Route the root stdlib logger into ``logger``.

    Existing redirect handlers are replaced; other root handlers are kept.
    """
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if isinstance(handler, RedirectStdLibHandler):
            root_logger.removeHandler(handler)

    handler = RedirectStdLibHandler(logger)
    root_logger.addHandler(handler)
    root_logger.setLevel(STDLIB_LEVELS[logger.level])
    return handler


__all__ = ["RedirectStdLibHandler", "intercept_stdlib_logging", "STDLIB_LEVELS"]
