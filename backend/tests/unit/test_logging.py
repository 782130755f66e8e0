"""Tests for structured logging setup."""

from __future__ import annotations

import asyncio
import io
import json
import sys

from orderflow.utils.logging import (
    bind_order_id,
    get_logger,
    get_order_id,
    set_order_id,
    setup_logging,
)


def _capture(fn: object) -> str:
    captured = io.StringIO()
    old_stderr = sys.stderr
    sys.stderr = captured
    try:
        fn()  # type: ignore[operator]
    finally:
        sys.stderr = old_stderr
    return captured.getvalue().strip()


class TestSetupLogging:
    """Test logging configuration."""

    def test_setup_logging_returns_none(self) -> None:
        result = setup_logging(level="INFO", log_format="json")
        assert result is None

    def test_get_logger_returns_bound_logger(self) -> None:
        setup_logging(level="INFO", log_format="json")
        assert get_logger("test") is not None


class TestJsonFormat:
    def test_json_output_is_valid(self) -> None:
        def emit() -> None:
            setup_logging(level="INFO", log_format="json")
            get_logger("test_json").info("test message", extra_key="extra_value")

        output = _capture(emit)
        if output:
            parsed = json.loads(output)
            assert parsed["event"] == "test message"
            assert parsed["extra_key"] == "extra_value"
            assert "timestamp" in parsed
            assert "level" in parsed


class TestConsoleFormat:
    def test_console_output_is_not_json(self) -> None:
        def emit() -> None:
            setup_logging(level="INFO", log_format="console")
            get_logger("test_console").info("console test")

        output = _capture(emit)
        if output:
            try:
                json.loads(output)
                is_json = True
            except json.JSONDecodeError:
                is_json = False
            assert not is_json


class TestOrderId:
    """Test order ID context variable."""

    def test_set_and_get(self) -> None:
        set_order_id("order-123")
        assert get_order_id() == "order-123"
        set_order_id("")

    def test_bind_restores_previous(self) -> None:
        set_order_id("outer")
        with bind_order_id("inner"):
            assert get_order_id() == "inner"
        assert get_order_id() == "outer"
        set_order_id("")

    def test_order_id_in_log(self) -> None:
        def emit() -> None:
            setup_logging(level="INFO", log_format="json")
            with bind_order_id("order-456"):
                get_logger("test_order").info("order event")

        output = _capture(emit)
        if output:
            assert json.loads(output).get("order_id") == "order-456"

    def test_explicit_order_id_wins(self) -> None:
        def emit() -> None:
            setup_logging(level="INFO", log_format="json")
            with bind_order_id("order-1"):
                get_logger("test_order").info("order event", order_id="order-2")

        output = _capture(emit)
        if output:
            assert json.loads(output).get("order_id") == "order-2"

    async def test_task_inherits_order_id(self) -> None:
        async def read() -> str:
            return get_order_id()

        with bind_order_id("order-9"):
            task = asyncio.create_task(read())
        assert await task == "order-9"
        assert get_order_id() == ""
