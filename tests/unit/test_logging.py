"""
Unit Tests - Logging
"""
import io
import json
import logging

import pytest
import structlog

from ecom_synth import DataGenerator
from ecom_synth.config.logging import build_renderer, configure_logging, run_context


@pytest.fixture
def log_stream():
    """Buffer receiving log output, detached from the root logger afterwards"""
    stream = io.StringIO()
    yield stream
    root = logging.getLogger()
    for handler in root.handlers[:]:
        if getattr(handler, "stream", None) is stream:
            root.removeHandler(handler)


def _json_lines(stream):
    return [json.loads(line) for line in stream.getvalue().splitlines() if line.strip()]


class TestConfigureLogging:
    """Tests for configure_logging"""

    def test_single_handler_on_stream(self, log_stream):
        """Test the root logger ends up with exactly one handler on the given stream"""
        handler = configure_logging(log_level="INFO", log_format="json", stream=log_stream)

        assert logging.getLogger().handlers == [handler]
        assert handler.stream is log_stream
        assert handler.level == logging.INFO

    def test_json_lines(self, log_stream):
        """Test structlog events render as one JSON object per line"""
        configure_logging(log_level="INFO", log_format="json", stream=log_stream)

        structlog.get_logger("ecom_synth.tests").info("Export written", rows=12)

        (line,) = _json_lines(log_stream)
        assert line["event"] == "Export written"
        assert line["rows"] == 12
        assert line["level"] == "info"
        assert line["logger"] == "ecom_synth.tests"

    def test_level_filters_debug(self, log_stream):
        """Test events below the configured level are dropped"""
        configure_logging(log_level="WARNING", log_format="json", stream=log_stream)

        structlog.get_logger("ecom_synth.tests").info("hidden")

        assert log_stream.getvalue() == ""

    def test_faker_is_quiet_at_debug(self, log_stream):
        """Test faker's locale chatter is held at WARNING"""
        configure_logging(log_level="DEBUG", log_format="json", stream=log_stream)

        assert logging.getLogger("faker").level == logging.WARNING

    def test_renderer_by_format(self):
        """Test "text" selects the console renderer and "json" the JSON one"""
        renderer = build_renderer("text", io.StringIO())

        assert isinstance(renderer, structlog.dev.ConsoleRenderer)
        assert isinstance(build_renderer("json", io.StringIO()), structlog.processors.JSONRenderer)


class TestRunContext:
    """Tests for per-run context binding"""

    def test_fields_bound_inside_block_only(self, log_stream):
        """Test bound fields appear inside the block and vanish after it"""
        configure_logging(log_level="INFO", log_format="json", stream=log_stream)
        log = structlog.get_logger("ecom_synth.tests")

        with run_context(seed=7, scale="Tiny"):
            log.info("inside")
        log.info("outside")

        inside, outside = _json_lines(log_stream)
        assert inside["seed"] == 7 and inside["scale"] == "Tiny"
        assert "seed" not in outside

    def test_generation_lines_carry_seed_and_scale(self, log_stream, tiny_scale, reference_time):
        """Test every line logged during generate_all names the run"""
        configure_logging(log_level="INFO", log_format="json", stream=log_stream)

        DataGenerator(tiny_scale, seed=3, reference_time=reference_time).generate_all()

        lines = [line for line in _json_lines(log_stream) if line["logger"] == "ecom_synth.data.generators"]
        events = [line["event"] for line in lines]
        assert events[0] == "Starting data generation"
        assert events[-1] == "Data generation complete"
        assert "Stage complete" in events
        assert all(line["seed"] == 3 and line["scale"] == "Tiny" for line in lines)
        assert structlog.contextvars.get_contextvars() == {}
