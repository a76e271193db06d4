"""
Tests for structured logging and correlation ids.
"""

import json
import logging

import pytest
from httpx import AsyncClient

from forgetbridge.shared.logging import (
    CORRELATION_ID_HEADER,
    StructuredFormatter,
    correlation_id_var,
    get_logger,
    setup_logging,
)


def _record(message: str, **extra: object) -> logging.LogRecord:
    record = logging.LogRecord("forgetbridge.test", logging.INFO, "", 0, message, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:
    def test_json_fields(self) -> None:
        output = json.loads(StructuredFormatter().format(_record("hello", universe_id="1001")))

        assert output["message"] == "hello"
        assert output["level"] == "INFO"
        assert output["logger"] == "forgetbridge.test"
        assert output["universe_id"] == "1001"

    def test_context_data_merged(self) -> None:
        record = _record("summary", extra_data={"succeeded": 2, "failed": 1})

        output = json.loads(StructuredFormatter().format(record))

        assert output["succeeded"] == 2
        assert output["failed"] == 1
        assert "extra_data" not in output

    def test_correlation_id_included(self) -> None:
        token = correlation_id_var.set("abc-123")
        try:
            output = json.loads(StructuredFormatter().format(_record("hello")))
        finally:
            correlation_id_var.reset(token)

        assert output["correlation_id"] == "abc-123"


class TestCorrelationIdMiddleware:
    @pytest.mark.asyncio
    async def test_caller_id_echoed(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/health", headers={CORRELATION_ID_HEADER: "req-1"})

        assert response.headers[CORRELATION_ID_HEADER] == "req-1"

    @pytest.mark.asyncio
    async def test_id_generated_when_missing(self, async_client: AsyncClient) -> None:
        first = await async_client.get("/health")
        second = await async_client.get("/health")

        assert first.headers[CORRELATION_ID_HEADER]
        assert first.headers[CORRELATION_ID_HEADER] != second.headers[CORRELATION_ID_HEADER]


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers = handlers
    root.setLevel(level)


class TestSetupLogging:
    def test_each_record_written_once(
        self,
        restore_root_logger: logging.Logger,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        setup_logging("INFO")
        get_logger("forgetbridge.test.once").info("written-once")

        lines = [line for line in capsys.readouterr().out.splitlines() if "written-once" in line]

        assert len(lines) == 1
        assert json.loads(lines[0])["logger"] == "forgetbridge.test.once"

    def test_repeated_setup_keeps_one_handler(
        self,
        restore_root_logger: logging.Logger,
    ) -> None:
        setup_logging("INFO")
        setup_logging("INFO")

        assert len(restore_root_logger.handlers) == 1
        assert get_logger("forgetbridge.test.once").handlers == []
