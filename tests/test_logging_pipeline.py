"""Tests for structured logging pipeline utilities."""

from __future__ import annotations

import io
import json
import logging
from logging.handlers import QueueListener
from queue import Queue

import pytest

from carbon_edge import logging_pipeline


def test_configure_structured_logging_emits_json() -> None:
    """Configure structured logging and verify JSON payloads are emitted."""

    buffer = io.StringIO()
    logger = logging.getLogger("carbon-edge-test")
    listener = logging_pipeline.configure_structured_logging(
        logger, trace_id="trace-123", level=logging.INFO, stream=buffer
    )

    logger.warning(
        "Carbon intensity fetch failed; using fallback",
        extra={"provider": "ElectricityMapsProvider", "location": "DE"},
    )
    logging_pipeline.shutdown_listeners([listener])

    payload = json.loads(buffer.getvalue().strip())
    assert payload["message"] == "Carbon intensity fetch failed; using fallback"
    assert payload["level"] == "WARNING"
    assert payload["trace_id"] == "trace-123"
    assert payload["context"]["provider"] == "ElectricityMapsProvider"
    assert payload["context"]["location"] == "DE"


def test_configure_structured_logging_generates_trace_id() -> None:
    """When trace ID is omitted a random identifier should be emitted."""

    buffer = io.StringIO()
    logger = logging.getLogger("carbon-edge-auto-trace")
    listener = logging_pipeline.configure_structured_logging(logger, stream=buffer)

    logger.info("auto-trace")
    logging_pipeline.shutdown_listeners([listener])

    payload = json.loads(buffer.getvalue())
    assert isinstance(payload["trace_id"], str)
    assert payload["trace_id"]
    assert payload["message"] == "auto-trace"


def test_bounded_queue_handler_drops_when_full() -> None:
    record_queue: Queue[logging.LogRecord] = Queue(maxsize=1)
    handler = logging_pipeline.BoundedQueueHandler(record_queue)
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)

    handler.enqueue(record)
    handler.enqueue(record)

    assert record_queue.qsize() == 1


def test_shutdown_listeners_logs_failures(caplog: pytest.LogCaptureFixture) -> None:
    """Listener shutdown failures should emit warnings."""

    class _FailingListener(QueueListener):
        def __init__(self) -> None:
            super().__init__(Queue(), logging.StreamHandler())

        def stop(self) -> None:
            raise RuntimeError("stop failure")

    with caplog.at_level(logging.WARNING):
        logging_pipeline.shutdown_listeners([_FailingListener()])

    assert "Failed to stop logging listener" in caplog.text
