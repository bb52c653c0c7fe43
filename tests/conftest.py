import logging
from datetime import datetime
from unittest.mock import MagicMock

import pytest

from fanlog.logging import core
from fanlog.logging.severity import Severity
from fanlog.logging.types import LogRecord

FIXED_TIME = datetime(2026, 10, 18, 14, 5, 9, 123456)


def make_record(level: Severity | str, message: str = "message", /, **fields) -> LogRecord:
    return LogRecord(level=Severity.parse(level), message=message, timestamp=FIXED_TIME, fields=fields)


@pytest.fixture(autouse=True)
def reset_process_logger():
    """Each test starts without a process-wide logger and with a clean root logger."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    core._reset_logger()
    yield
    core._reset_logger()
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def cloudwatch_client(monkeypatch):
    """Replace boto3's CloudWatch Logs client with a mock."""
    client = MagicMock(name="logs_client")
    factory = MagicMock(return_value=client)
    monkeypatch.setattr("fanlog.logging.cloudwatch.boto3.client", factory)
    client.factory = factory
    return client


@pytest.fixture
def cloudwatch_settings():
    return {
        "enable": True,
        "group_name": "g",
        "stream_name": "s",
        "region": "r",
        "access_key_id": "AKIAEXAMPLE",
        "secret_access_key": "secret",
    }
