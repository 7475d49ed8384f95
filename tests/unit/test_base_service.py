from __future__ import annotations

from unittest.mock import Mock, patch

import pytest
from sqlalchemy.exc import OperationalError

from lessonbook.core.exceptions import NotFoundException, ServiceException
from lessonbook.services import base as base_module
from lessonbook.services.base import BaseService

pytestmark = pytest.mark.unit


class TestTransaction:
    def test_commits_on_success(self) -> None:
        db = Mock()
        service = BaseService(db)

        with service.transaction():
            pass

        db.commit.assert_called_once()
        db.rollback.assert_not_called()

    def test_store_error_rolls_back_and_wraps_with_cause(self) -> None:
        db = Mock()
        original = OperationalError("UPDATE lessons", {}, Exception("database is locked"))
        db.commit.side_effect = original
        service = BaseService(db)

        with pytest.raises(ServiceException) as exc_info:
            with service.transaction():
                pass

        db.rollback.assert_called_once()
        assert exc_info.value.__cause__ is original

    def test_domain_error_rolls_back_and_propagates(self) -> None:
        db = Mock()
        service = BaseService(db)

        with pytest.raises(NotFoundException):
            with service.transaction():
                raise NotFoundException("Lesson not found: x")

        db.rollback.assert_called_once()
        db.commit.assert_not_called()


class TestMeasureOperation:
    def test_records_success_and_error_in_prometheus(self, monkeypatch) -> None:
        class CounterService(BaseService):
            @BaseService.measure_operation("maybe_fail")
            def maybe_fail(self, fail: bool) -> str:
                if fail:
                    raise ValueError("nope")
                return "ok"

        fake = Mock()
        monkeypatch.setattr(base_module, "prometheus_metrics", fake)
        service = CounterService(Mock())

        assert service.maybe_fail(False) == "ok"
        with pytest.raises(ValueError):
            service.maybe_fail(True)

        calls = [c.kwargs for c in fake.record_service_operation.call_args_list]
        assert [c["status"] for c in calls] == ["success", "error"]
        assert calls[0]["service"] == "CounterService"
        assert calls[0]["operation"] == "maybe_fail"
        assert calls[0]["error_type"] is None
        assert calls[1]["error_type"] == "ValueError"

    def test_preserves_wrapped_name(self) -> None:
        class NamedService(BaseService):
            @BaseService.measure_operation("named")
            def named(self) -> None:
                return None

        assert NamedService.named.__name__ == "named"

    def test_logs_slow_operation(self) -> None:
        class SlowService(BaseService):
            @BaseService.measure_operation("slow_op")
            def slow_op(self) -> str:
                return "done"

        service = SlowService(Mock())

        with patch("lessonbook.services.base.time.time", side_effect=[0.0, 2.0]):
            with patch.object(service.logger, "warning") as mock_warning:
                assert service.slow_op() == "done"

        mock_warning.assert_called_once()

    def test_prometheus_failure_does_not_break_operation(self, monkeypatch) -> None:
        class QuietService(BaseService):
            @BaseService.measure_operation("quiet")
            def quiet(self) -> str:
                return "still works"

        class FakePrometheus:
            def record_service_operation(self, **_kwargs) -> None:
                raise RuntimeError("metrics down")

        monkeypatch.setattr(base_module, "prometheus_metrics", FakePrometheus())

        with patch.object(base_module.logger, "debug") as mock_debug:
            assert QuietService(Mock()).quiet() == "still works"

        mock_debug.assert_called_once()
