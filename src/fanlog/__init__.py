"""
Fanlog: a structured logging facade.

    from fanlog import get_logger

    logger = get_logger()
    logger.info("Hello World")
"""

from fanlog.logging import LoggerFacade, LoggingOptions, Severity, get_logger, init_logging

__all__ = ["get_logger", "init_logging", "LoggerFacade", "LoggingOptions", "Severity"]
