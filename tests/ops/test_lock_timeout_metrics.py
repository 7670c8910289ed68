import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from app.stockflow.core.error_catalog import AppError
from app.stockflow.core.errors import setup_exception_handlers
from app.stockflow.core.metrics import metrics
from app.stockflow.services.unit_of_work import TransferUnitOfWork


class _NullSession:
    def commit(self):
        pass

    def rollback(self):
        pass

    def close(self):
        pass


def test_lock_timeout_increments_metric():
    metrics.reset()
    app = FastAPI()
    setup_exception_handlers(app)

    @app.get("/lock-timeout")
    def lock_timeout():
        raise OperationalError("SELECT 1", {}, Exception("lock timeout"))

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/lock-timeout")

    assert response.status_code == 409
    assert response.json()["code"] == "LOCK_TIMEOUT"

    snapshot = metrics.render()
    content = snapshot.content.decode("utf-8")
    if metrics.enabled:
        assert "lock_wait_timeout_total" in content
    else:
        assert "metrics_disabled" in content


def test_unit_of_work_retries_lock_contention_then_times_out():
    metrics.reset()
    attempts = []

    def work(db):
        attempts.append(db)
        raise OperationalError("UPDATE stock_transfers", {}, Exception("database is locked"))

    unit_of_work = TransferUnitOfWork(_NullSession, max_attempts=3, backoff_ms=0)

    with pytest.raises(AppError) as exc_info:
        unit_of_work.run("ship", work)

    assert exc_info.value.code == "LOCK_TIMEOUT"
    assert exc_info.value.details["attempts"] == 3
    assert len(attempts) == 3
    if metrics.enabled:
        content = metrics.render().content.decode("utf-8")
        assert "stock_transfer_conflict_retries_total 2.0" in content
        assert "lock_wait_timeout_total 1.0" in content


def test_unit_of_work_recovers_after_transient_lock():
    calls = []

    def work(db):
        calls.append(db)
        if len(calls) == 1:
            raise OperationalError("UPDATE stock_transfers", {}, Exception("database is locked"))
        return "done"

    unit_of_work = TransferUnitOfWork(_NullSession, max_attempts=3, backoff_ms=0)

    assert unit_of_work.run("receive", work) == "done"
    assert len(calls) == 2


def test_unit_of_work_does_not_retry_other_operational_errors():
    calls = []

    def work(db):
        calls.append(db)
        raise OperationalError("SELECT 1", {}, Exception("no such table: stock_transfers"))

    unit_of_work = TransferUnitOfWork(_NullSession, max_attempts=3, backoff_ms=0)

    with pytest.raises(AppError) as exc_info:
        unit_of_work.run("create", work)

    assert exc_info.value.code == "INTERNAL_ERROR"
    assert len(calls) == 1
