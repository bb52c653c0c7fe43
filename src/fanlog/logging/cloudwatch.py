"""
AWS CloudWatch Logs sink.

Records are queued by ``emit`` and uploaded in batches by a daemon thread, so
a log call never waits on the network. Upload failures are reported on
stderr and dropped; they never reach the code that logged.
"""

from __future__ import annotations

import queue
import sys
import threading
import time
from typing import Any, Optional

import boto3

from fanlog.exceptions import MissingCloudWatchSettings

from .filters import LevelFilter, ThresholdFilter
from .formatters import RemoteMessageFormatter
from .severity import Severity
from .sinks import BaseSink
from .types import CloudWatchOptions, LogRecord

# PutLogEvents limits
MAX_BATCH_EVENTS = 10_000
MAX_BATCH_BYTES = 1_048_576
EVENT_OVERHEAD_BYTES = 26


def _report(message: str) -> None:
    print(f"fanlog.cloudwatch: {message}", file=sys.__stderr__)


class CloudWatchSink(BaseSink):
    """Remote aggregation sink backed by CloudWatch Logs.

    Args:
        options: CloudWatch settings. Group, stream, region and both halves of
            the credentials are required.
        level_filter: Defaults to accepting everything the facade lets through.
        client: Pre-built ``logs`` client; one is created from the options
            otherwise.
        start: Start the background uploader immediately.
    """

    def __init__(
        self,
        options: CloudWatchOptions,
        level_filter: Optional[LevelFilter] = None,
        *,
        client: Any = None,
        start: bool = True,
        max_queue_size: int = 100_000,
    ):
        missing = options.missing_fields()
        if missing:
            raise MissingCloudWatchSettings(missing=missing)

        super().__init__(
            name="cloudwatch",
            formatter=RemoteMessageFormatter(),
            level_filter=level_filter or ThresholdFilter(Severity.SILLY),
        )
        self.group_name: str = options.group_name  # type: ignore[assignment]
        self.stream_name: str = options.stream_name  # type: ignore[assignment]
        self.region: str = options.region  # type: ignore[assignment]
        self.upload_interval = options.upload_interval
        self._client = client or boto3.client(
            "logs",
            region_name=options.region,
            aws_access_key_id=options.access_key_id,
            aws_secret_access_key=options.secret_access_key.get_secret_value(),  # type: ignore[union-attr]
        )
        self._queue: "queue.Queue[dict[str, Any]]" = queue.Queue(maxsize=max_queue_size)
        self._upload_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._stream_ready = False
        self._dropped = 0
        self._worker: Optional[threading.Thread] = None
        if start:
            self.start()

    def start(self) -> None:
        """Start the background uploader thread."""
        if self._worker is not None and self._worker.is_alive():
            return
        self._stop_event.clear()
        self._worker = threading.Thread(target=self._worker_loop, name="fanlog-cloudwatch", daemon=True)
        self._worker.start()

    def emit(self, record: LogRecord) -> None:
        event = {
            "timestamp": int(record.timestamp.timestamp() * 1000),
            "message": self.formatter.format(record),
        }
        self._enqueue(event)

    def deliver(self, formatted: str) -> None:
        """Queue already formatted text stamped with the current time.

        Records from the facade go through :meth:`emit`, which keeps the
        record's own timestamp.
        """
        self._enqueue({"timestamp": int(time.time() * 1000), "message": formatted})

    def _enqueue(self, event: dict[str, Any]) -> None:
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            self._dropped += 1
            if self._dropped == 1:
                _report("upload queue full, dropping records")

    @property
    def pending(self) -> int:
        """Number of records waiting for upload."""
        return self._queue.qsize()

    def _worker_loop(self) -> None:
        while not self._stop_event.wait(self.upload_interval):
            self.flush()

    def flush(self) -> None:
        """Upload everything queued so far. Errors are reported, not raised."""
        with self._upload_lock:
            events = self._drain()
            for batch in _batches(events):
                try:
                    self._put(batch)
                except Exception as exc:
                    _report(f"failed to upload {len(batch)} event(s) to {self.group_name}/{self.stream_name}: {exc}")

    def _drain(self) -> list[dict[str, Any]]:
        events = []
        while True:
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                return events

    def _put(self, batch: list[dict[str, Any]]) -> None:
        if not self._stream_ready:
            self._ensure_stream()
        self._client.put_log_events(
            logGroupName=self.group_name,
            logStreamName=self.stream_name,
            logEvents=batch,
        )

    def _ensure_stream(self) -> None:
        exists = self._client.exceptions.ResourceAlreadyExistsException
        try:
            self._client.create_log_group(logGroupName=self.group_name)
        except exists:
            pass
        try:
            self._client.create_log_stream(logGroupName=self.group_name, logStreamName=self.stream_name)
        except exists:
            pass
        self._stream_ready = True

    def close(self) -> None:
        """Stop the uploader and make a best-effort final upload."""
        self._stop_event.set()
        if self._worker is not None and self._worker is not threading.current_thread():
            self._worker.join(timeout=5.0)
        self._worker = None
        self.flush()


def _batches(events: list[dict[str, Any]]) -> list[list[dict[str, Any]]]:
    """Split events into PutLogEvents-sized batches, ordered by timestamp."""
    batches: list[list[dict[str, Any]]] = []
    current: list[dict[str, Any]] = []
    size = 0
    for event in sorted(events, key=lambda e: e["timestamp"]):
        event_size = len(event["message"].encode("utf-8")) + EVENT_OVERHEAD_BYTES
        if current and (len(current) >= MAX_BATCH_EVENTS or size + event_size > MAX_BATCH_BYTES):
            batches.append(current)
            current, size = [], 0
        current.append(event)
        size += event_size
    if current:
        batches.append(current)
    return batches


__all__ = ["CloudWatchSink"]
