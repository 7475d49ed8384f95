from __future__ import annotations

import logging

import pytest

from lessonbook.core.request_context import (
    RequestIdFilter,
    get_request_id,
    reset_request_id,
    set_request_id,
)

pytestmark = pytest.mark.unit


def _record() -> logging.LogRecord:
    return logging.LogRecord("lessonbook", logging.INFO, __file__, 1, "hello", None, None)


def test_filter_uses_current_request_id() -> None:
    token = set_request_id("req-1")
    try:
        record = _record()
        assert RequestIdFilter().filter(record) is True
        assert record.request_id == "req-1"
    finally:
        reset_request_id(token)

    assert get_request_id() is None


def test_filter_outside_request() -> None:
    record = _record()
    RequestIdFilter().filter(record)
    assert record.request_id == "no-request"
