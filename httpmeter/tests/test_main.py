"""
Unit tests for the meter daemon entry point.

Tests verify:
- Structured JSON logging is configured via setup_logging().
- SIGTERM/SIGINT handlers are registered.
- Shutdown event stops the power and energy loops.
- Loops record poll outcomes and survive extraction errors.
- An invalid configuration terminates with exit status 1.

CHANGELOG:
- 2026-10-18: Initial creation (STORY-014)

TODO:
- None
"""

import json
import logging
import signal
import sys
import threading
from unittest.mock import MagicMock, patch

import pytest
from httpmeter.src.logging_config import (
    JSONFormatter,
    appliance_logger,
    setup_logging,
)

# ====================================================================
# Structured JSON logging
# ====================================================================


def _record(msg: str = "hello world", args: tuple = (), exc_info=None):
    return logging.LogRecord(
        name="httpmeter.src.meter",
        level=logging.INFO,
        pathname="meter.py",
        lineno=1,
        msg=msg,
        args=args,
        exc_info=exc_info,
    )


class TestJSONFormatter:
    """JSONFormatter outputs valid JSON with required fields."""

    def test_format_contains_required_fields(self) -> None:
        output = JSONFormatter().format(_record())
        parsed = json.loads(output)

        assert "timestamp" in parsed
        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "httpmeter.src.meter"
        assert parsed["message"] == "hello world"
        assert "thread" in parsed
        assert "exception" not in parsed

    def test_format_with_args(self) -> None:
        output = JSONFormatter().format(_record("%s: power = %sW", ("F-1", 42.0)))
        assert json.loads(output)["message"] == "F-1: power = 42.0W"

    def test_format_with_exception(self) -> None:
        try:
            raise ValueError("pattern does not match")
        except ValueError:
            record = _record("poll failed", exc_info=sys.exc_info())

        parsed = json.loads(JSONFormatter().format(record))

        assert "ValueError: pattern does not match" in parsed["exception"]

    def test_format_with_appliance_id(self) -> None:
        record = _record("power = 42W")
        record.appliance_id = "F-00000001-000000000001-00"

        parsed = json.loads(JSONFormatter().format(record))

        assert parsed["appliance_id"] == "F-00000001-000000000001-00"
        assert list(parsed)[-2:] == ["appliance_id", "message"]

    def test_appliance_id_omitted_for_daemon_records(self) -> None:
        parsed = json.loads(JSONFormatter().format(_record()))
        assert "appliance_id" not in parsed

    def test_appliance_logger_tags_records(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        adapter = appliance_logger(logging.getLogger("httpmeter.test"), "F-1")

        with caplog.at_level(logging.INFO, logger="httpmeter.test"):
            adapter.info("tagged")

        assert caplog.records[-1].appliance_id == "F-1"


class TestSetupLogging:
    """setup_logging() configures root logger with JSONFormatter."""

    def test_root_logger_has_json_handler(self) -> None:
        setup_logging()
        root = logging.getLogger()
        assert any(isinstance(h.formatter, JSONFormatter) for h in root.handlers)

    def test_setup_logging_accepts_level_name(self) -> None:
        setup_logging(level="DEBUG")
        assert logging.getLogger().level == logging.DEBUG

        # Reset to INFO for other tests.
        setup_logging(level=logging.INFO)


# ====================================================================
# Signal handlers and startup
# ====================================================================


def _mock_settings() -> MagicMock:
    settings = MagicMock()
    settings.poll_interval_s = 0.01
    settings.measurement_interval_s = 60
    settings.log_level = "INFO"
    settings.health_file_path = "/nonexistent/health.json"
    return settings


class TestMain:
    @patch("httpmeter.src.main.setup_logging")
    @patch("httpmeter.src.main.MeterSettings")
    @patch("httpmeter.src.main.HttpElectricityMeter")
    def test_signal_handlers_registered(
        self,
        mock_meter_cls: MagicMock,
        mock_settings_cls: MagicMock,
        mock_setup: MagicMock,
    ) -> None:
        """SIGTERM and SIGINT handlers are registered during main()."""
        from httpmeter.src.main import main, shutdown_event

        mock_settings_cls.return_value = _mock_settings()
        mock_meter_cls.from_settings.return_value = MagicMock()

        with patch("signal.signal") as mock_signal, patch(
            "httpmeter.src.main.threading.Thread"
        ):
            # Set shutdown event immediately so main() does not block.
            shutdown_event.set()
            main()

        registered_signals = {c[0][0] for c in mock_signal.call_args_list}
        assert signal.SIGTERM in registered_signals
        assert signal.SIGINT in registered_signals

        shutdown_event.clear()

    @pytest.mark.parametrize(
        ("energy_read", "expected_threads"),
        [
            (None, ["power-poll-thread"]),
            (MagicMock(), ["power-poll-thread", "energy-poll-thread"]),
        ],
    )
    @patch("httpmeter.src.main.setup_logging")
    @patch("httpmeter.src.main.MeterSettings")
    @patch("httpmeter.src.main.HttpElectricityMeter")
    def test_energy_thread_only_with_energy_read(
        self,
        mock_meter_cls: MagicMock,
        mock_settings_cls: MagicMock,
        mock_setup: MagicMock,
        energy_read,
        expected_threads: list[str],
    ) -> None:
        from httpmeter.src.main import main, shutdown_event

        mock_settings_cls.return_value = _mock_settings()
        meter = MagicMock()
        meter.energy_read = energy_read
        mock_meter_cls.from_settings.return_value = meter

        with patch("signal.signal"), patch(
            "httpmeter.src.main.threading.Thread"
        ) as mock_thread:
            shutdown_event.set()
            main()

        names = [c.kwargs["name"] for c in mock_thread.call_args_list]
        assert names == expected_threads

        shutdown_event.clear()

    @patch("httpmeter.src.main.setup_logging")
    def test_invalid_configuration_exits(
        self,
        mock_setup: MagicMock,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Missing HTTP_READS terminates the process with status 1."""
        from httpmeter.src.main import main

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1
        assert "incorrect configuration" in caplog.text

    def test_signal_handler_sets_event(self) -> None:
        from httpmeter.src.main import _signal_handler, shutdown_event

        shutdown_event.clear()
        _signal_handler(signal.SIGTERM, None)
        assert shutdown_event.is_set()

        shutdown_event.clear()


# ====================================================================
# Poll loops
# ====================================================================


class TestPollLoops:
    """Loops poll the meter, record outcomes and stop on shutdown."""

    def _run_once(self, target, meter: MagicMock) -> None:
        """Run *target* for exactly one iteration."""
        from httpmeter.src.main import shutdown_event

        shutdown_event.clear()

        def stop_after_first(*_args, **_kwargs):
            shutdown_event.set()

        with patch(
            "httpmeter.src.main.write_health_file",
            side_effect=stop_after_first,
        ):
            thread = threading.Thread(
                target=target, args=(meter, _mock_settings()), daemon=True
            )
            thread.start()
            thread.join(timeout=2)
            assert not thread.is_alive()

        shutdown_event.clear()

    def test_power_loop_exits_on_shutdown(self) -> None:
        from httpmeter.src.main import _poll_power_loop, shutdown_event

        meter = MagicMock()
        shutdown_event.set()
        thread = threading.Thread(
            target=_poll_power_loop, args=(meter, _mock_settings()), daemon=True
        )
        thread.start()
        thread.join(timeout=2)

        assert not thread.is_alive()
        meter.update_power.assert_not_called()
        shutdown_event.clear()

    def test_power_loop_records_success(self) -> None:
        from httpmeter.src.main import _poll_power_loop

        meter = MagicMock()
        meter.update_power.return_value = 42.0

        with patch("httpmeter.src.main.record_poll") as mock_record:
            self._run_once(_poll_power_loop, meter)

        meter.update_power.assert_called_once()
        mock_record.assert_called_once_with("Power", True)

    def test_power_loop_records_unavailable(self) -> None:
        from httpmeter.src.main import _poll_power_loop

        meter = MagicMock()
        meter.update_power.return_value = None

        with patch("httpmeter.src.main.record_poll") as mock_record:
            self._run_once(_poll_power_loop, meter)

        mock_record.assert_called_once_with("Power", False)

    def test_power_loop_survives_extraction_error(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        from httpmeter.src.main import _poll_power_loop

        meter = MagicMock()
        meter.appliance_id = "F-1"
        meter.update_power.side_effect = ValueError("no match")

        with patch("httpmeter.src.main.record_poll") as mock_record:
            self._run_once(_poll_power_loop, meter)

        mock_record.assert_called_once_with("Power", False)
        assert "Unexpected error in power poll loop" in caplog.text
        error_record = next(
            r for r in caplog.records if r.levelno == logging.ERROR
        )
        assert error_record.appliance_id == "F-1"

    def test_energy_loop_records_success(self) -> None:
        from httpmeter.src.main import _poll_energy_loop

        meter = MagicMock()
        meter.update_energy.return_value = 1234.5

        with patch("httpmeter.src.main.record_poll") as mock_record:
            self._run_once(_poll_energy_loop, meter)

        meter.update_energy.assert_called_once()
        mock_record.assert_called_once_with("Energy", True)
