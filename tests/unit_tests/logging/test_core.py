"""
Logger facade tests: fan-out, no-fail contract, lifecycle and scenarios.
"""

from __future__ import annotations

import threading

import orjson
import pytest

from fanlog.config import Settings
from fanlog.exceptions import LoggingConfigurationError
from fanlog.logging import core
from fanlog.logging.core import LoggerFacade, configure_logging, get_logger, init_logging
from fanlog.logging.filters import ExactLevelFilter, ThresholdFilter
from fanlog.logging.formatters import StructuredFormatter
from fanlog.logging.severity import Severity
from fanlog.logging.sinks import BaseSink, ConsoleSink
from fanlog.logging.types import LoggingOptions


class RecordingSink(BaseSink):
    def __init__(self, level_filter=None, name="recording"):
        super().__init__(name=name, formatter=StructuredFormatter(), level_filter=level_filter or ThresholdFilter("silly"))
        self.records = []
        self.closed = False

    def emit(self, record) -> None:
        self.records.append(record)

    def deliver(self, formatted: str) -> None:
        raise AssertionError("emit is overridden")

    def close(self) -> None:
        self.closed = True


class BrokenSink(RecordingSink):
    def emit(self, record) -> None:
        raise OSError("disk full")

    def close(self) -> None:
        raise OSError("cannot close")


class TestFanout:
    """Level check -> per-sink filter -> deliver"""

    def test_global_minimum_gates_all_sinks(self) -> None:
        sink = RecordingSink()
        logger = LoggerFacade.create([sink], "info")
        logger.debug("hidden")
        logger.verbose("hidden")
        logger.info("shown")
        logger.warn("shown")
        logger.error("shown")
        assert [r.level for r in sink.records] == [Severity.INFO, Severity.WARN, Severity.ERROR]

    def test_per_sink_filters(self) -> None:
        combined = RecordingSink(ThresholdFilter("debug"))
        errors = RecordingSink(ExactLevelFilter("error"))
        infos = RecordingSink(ExactLevelFilter("info"))
        logger = LoggerFacade.create([combined, errors, infos], "debug")
        for level in ("debug", "verbose", "info", "warn", "error"):
            logger.log(level, level)
        assert [r.message for r in combined.records] == ["debug", "verbose", "info", "warn", "error"]
        assert [r.message for r in errors.records] == ["error"]
        assert [r.message for r in infos.records] == ["info"]

    def test_sinks_receive_in_insertion_order(self) -> None:
        order = []

        class OrderedSink(RecordingSink):
            def emit(self, record) -> None:
                order.append(self.name)

        logger = LoggerFacade.create([OrderedSink(name="a"), OrderedSink(name="b")], "debug")
        logger.info("x")
        assert order == ["a", "b"]

    def test_fields_and_bind(self) -> None:
        sink = RecordingSink()
        logger = LoggerFacade.create([sink], "debug").bind(request_id="r1")
        logger.info("hello", user="u1")
        record = sink.records[0]
        assert record.message == "hello"
        assert dict(record.fields) == {"request_id": "r1", "user": "u1"}

    def test_bind_returns_facade_with_same_sinks(self) -> None:
        sink = RecordingSink()
        logger = LoggerFacade.create([sink], "warn")
        bound = logger.bind(a=1)
        assert isinstance(bound, LoggerFacade)
        assert bound.sinks == logger.sinks
        assert bound.level is Severity.WARN

    def test_warning_alias_and_names(self) -> None:
        sink = RecordingSink()
        logger = LoggerFacade.create([sink], "silly")
        logger.warning("w")
        logger.log("critical", "c")
        logger.silly("s")
        assert [r.level for r in sink.records] == [Severity.WARN, Severity.ERROR, Severity.SILLY]

    def test_exception_attaches_traceback(self) -> None:
        sink = RecordingSink()
        logger = LoggerFacade.create([sink], "debug")
        try:
            raise ValueError("bad value")
        except ValueError:
            logger.exception("failed")
        record = sink.records[0]
        assert record.level is Severity.ERROR
        assert "ValueError: bad value" in record.fields["exception"]

    def test_non_string_message(self) -> None:
        sink = RecordingSink()
        LoggerFacade.create([sink], "debug").info(42)
        assert sink.records[0].message == "42"


class TestNoFail:
    """log never raises"""

    def test_failing_sink_does_not_block_others(self, capfd) -> None:
        good = RecordingSink()
        logger = LoggerFacade.create([BrokenSink(name="broken"), good], "debug")
        logger.error("still delivered")
        assert [r.message for r in good.records] == ["still delivered"]
        assert "disk full" in capfd.readouterr().err

    def test_unknown_level_is_reported(self, capfd) -> None:
        sink = RecordingSink()
        LoggerFacade.create([sink], "debug").log("loud", "x")
        assert sink.records == []
        assert "Unknown log level" in capfd.readouterr().err

    def test_unwritable_file_does_not_raise(self, tmp_path, capfd) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        options = LoggingOptions(file_logs={"log_dir": str(blocker / "logs")}, console={"colorize": False})
        logger = configure_logging(options)
        logger.info("survives")
        assert "failed to write" in capfd.readouterr().err

    def test_reserved_field_names_are_accepted(self, capfd) -> None:
        sink = RecordingSink()
        logger = LoggerFacade.create([sink], "debug")
        logger.info("job done", level=3, message="other", timestamp="yesterday")
        logger.log("warn", "retry", level="v", method_name="m", event="e")
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            logger.exception("job failed", level=1)

        assert [(r.level, r.message) for r in sink.records] == [
            (Severity.INFO, "job done"),
            (Severity.WARN, "retry"),
            (Severity.ERROR, "job failed"),
        ]
        assert sink.records[1].fields["method_name"] == "m"
        assert capfd.readouterr().err == ""

    def test_reserved_field_names_in_file_output(self, tmp_path) -> None:
        logger = configure_logging(LoggingOptions(file_logs={"log_dir": str(tmp_path)}, console={"colorize": False}))
        logger.info("job done", level=3, message="other", timestamp="yesterday", attempt=2)
        logger.close()
        entry = orjson.loads((tmp_path / "combined.log").read_text())
        assert entry["level"] == "info"
        assert entry["message"] == "job done"
        assert entry["attempt"] == 2
        assert entry["timestamp"] != "yesterday"

    def test_close_reports_failures(self, capfd) -> None:
        ok = RecordingSink()
        LoggerFacade.create([BrokenSink(name="broken"), ok], "debug").close()
        assert ok.closed
        assert "cannot close" in capfd.readouterr().err


class TestScenarios:
    """End-to-end configurations"""

    def test_production_files_without_rotation(self, tmp_path, capsys) -> None:
        options = LoggingOptions(
            environment="production",
            file_logs={"enable": True, "log_dir": str(tmp_path), "rotation": {"enable": False}},
            console={"colorize": True},
        )
        logger = configure_logging(options)
        logger.info("Hello World")
        logger.close()

        for name in ("combined.log", "info.log"):
            lines = (tmp_path / name).read_text().splitlines()
            assert len(lines) == 1
            assert '"message":"Hello World"' in lines[0]
            assert '"level":"info"' in lines[0]
        error_log = tmp_path / "error.log"
        assert not error_log.exists() or error_log.read_text() == ""

        out = capsys.readouterr().out.splitlines()
        assert len(out) == 1
        assert "Hello World" in out[0]
        assert "\033[" in out[0]

    def test_production_debug_is_dropped(self, tmp_path) -> None:
        logger = configure_logging(LoggingOptions(environment="production", file_logs={"log_dir": str(tmp_path)}))
        logger.debug("noise")
        logger.close()
        assert not (tmp_path / "combined.log").exists()

    def test_remote_only(self, tmp_path, capsys, cloudwatch_client, cloudwatch_settings) -> None:
        options = LoggingOptions(
            file_logs={"log_dir": str(tmp_path)},
            cloudwatch={**cloudwatch_settings, "disable_console_logs": True, "disable_file_logs": True},
        )
        logger = configure_logging(options)
        assert len(logger.sinks) == 1
        logger.warn("disk low")
        logger.close()

        events = [e for call in cloudwatch_client.put_log_events.call_args_list for e in call.kwargs["logEvents"]]
        assert [e["message"] for e in events] == ["[warn] : disk low"]
        assert capsys.readouterr().out == ""
        assert list(tmp_path.iterdir()) == []

    def test_missing_credentials_fail_construction(self, cloudwatch_client) -> None:
        with pytest.raises(LoggingConfigurationError):
            configure_logging(LoggingOptions(cloudwatch={"enable": True, "group_name": "g", "stream_name": "s"}))

    def test_combined_file_contents(self, tmp_path) -> None:
        logger = configure_logging(
            LoggingOptions(file_logs={"log_dir": str(tmp_path)}, console={"colorize": False}, level="debug")
        )
        logger.info("i")
        logger.error("e")
        logger.warn("w")
        logger.close()
        combined = [orjson.loads(line)["message"] for line in (tmp_path / "combined.log").read_text().splitlines()]
        assert combined == ["i", "e", "w"]
        assert [orjson.loads(line)["level"] for line in (tmp_path / "error.log").read_text().splitlines()] == ["error"]
        assert [orjson.loads(line)["level"] for line in (tmp_path / "info.log").read_text().splitlines()] == ["info"]


class TestLifecycle:
    """Construct once, reuse for the process"""

    def test_init_logging_uses_given_options(self, tmp_path) -> None:
        options = LoggingOptions(file_logs={"enable": False}, level="warn")
        logger = init_logging(options)
        assert logger.level is Severity.WARN
        assert [type(s) for s in logger.sinks] == [ConsoleSink]
        assert get_logger() is logger

    def test_repeated_get_logger_is_identical(self, monkeypatch) -> None:
        monkeypatch.setenv("FANLOG_LOG_FILE_LOGS_ENABLE", "false")
        monkeypatch.setattr("fanlog.config.settings", Settings())
        first = get_logger()
        assert get_logger() is first
        assert get_logger().sinks == first.sinks

    def test_same_options_again_returns_instance(self) -> None:
        options = LoggingOptions(file_logs={"enable": False})
        assert init_logging(options) is init_logging(LoggingOptions(file_logs={"enable": False}))

    def test_different_options_after_init_raise(self) -> None:
        init_logging(LoggingOptions(file_logs={"enable": False}))
        with pytest.raises(LoggingConfigurationError) as excinfo:
            init_logging(LoggingOptions(file_logs={"enable": False}, level="error"))
        assert excinfo.value.code == "LOGGING_ALREADY_INITIALIZED"

    def test_concurrent_first_use_builds_once(self, monkeypatch) -> None:
        built = []
        barrier = threading.Barrier(8)
        real_configure = core.configure_logging

        def counting_configure(options):
            built.append(options)
            return real_configure(options)

        monkeypatch.setattr(core, "configure_logging", counting_configure)
        monkeypatch.setattr(core, "_options_from_settings", lambda: LoggingOptions(file_logs={"enable": False}))

        results = []

        def worker():
            barrier.wait()
            results.append(get_logger())

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(built) == 1
        assert all(r is results[0] for r in results)

    def test_environment_drives_level(self, monkeypatch) -> None:
        monkeypatch.setenv("FANLOG_ENV", "production")
        monkeypatch.setenv("FANLOG_LOG_FILE_LOGS_ENABLE", "false")
        monkeypatch.delenv("FANLOG_LOG_LEVEL", raising=False)
        monkeypatch.setattr("fanlog.config.settings", Settings())
        assert get_logger().level is Severity.INFO
