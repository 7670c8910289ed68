from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from app.stockflow.core.error_catalog import AppError, ErrorCatalog
from app.stockflow.core.errors import is_lock_error
from app.stockflow.core.logging import log_json
from app.stockflow.core.metrics import metrics
from app.stockflow.repos.users import UserRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_conflict(exc: BaseException) -> bool:
    return isinstance(exc, StaleDataError) or is_lock_error(exc)


def require_actor(db, actor_id: int):
    user = UserRepository(db).get_active(actor_id)
    if user is None:
        raise AppError(
            ErrorCatalog.REFERENCE_NOT_FOUND,
            details={"message": f"user {actor_id} not found or inactive", "field": "user_id", "id": actor_id},
        )
    return user


class TransferUnitOfWork:
    """Runs one transfer operation in its own session and transaction.

    Version conflicts and lock contention roll back and re-run the whole
    operation from a fresh read, so every check sees committed state.
    """

    def __init__(self, session_factory, *, max_attempts: int = 5, backoff_ms: int = 25):
        self.session_factory = session_factory
        self.max_attempts = max(1, max_attempts)
        self.backoff_ms = max(0, backoff_ms)

    def read(self, work: Callable[..., T]) -> T:
        db = self.session_factory()
        try:
            return work(db)
        finally:
            db.close()

    def run(self, operation: str, work: Callable[..., T]) -> T:
        attempt = 0
        while True:
            attempt += 1
            db = self.session_factory()
            try:
                result = work(db)
                db.commit()
            except AppError as exc:
                db.rollback()
                metrics.record_transfer_operation(operation, "rejected")
                log_json(
                    logger,
                    {
                        "event": "transfer.rejected",
                        "operation": operation,
                        "code": exc.code,
                        "details": exc.details,
                    },
                    level=logging.WARNING,
                )
                raise
            except (StaleDataError, OperationalError) as exc:
                db.rollback()
                if not is_conflict(exc):
                    self._fail(operation, exc)
                if attempt >= self.max_attempts:
                    self._exhausted(operation, exc, attempt)
                metrics.increment_transfer_conflict_retry()
                log_json(
                    logger,
                    {
                        "event": "transfer.conflict_retry",
                        "operation": operation,
                        "attempt": attempt,
                        "error_class": exc.__class__.__name__,
                    },
                    level=logging.WARNING,
                )
                time.sleep(self.backoff_ms * attempt / 1000)
                continue
            except Exception as exc:
                db.rollback()
                self._fail(operation, exc)
            finally:
                db.close()
            metrics.record_transfer_operation(operation, "success")
            return result

    def _fail(self, operation: str, exc: BaseException) -> None:
        logger.exception("stock transfer %s failed", operation)
        metrics.record_transfer_operation(operation, "error")
        raise AppError(
            ErrorCatalog.INTERNAL_ERROR,
            details={"message": f"stock transfer {operation} failed", "type": exc.__class__.__name__},
        ) from exc

    def _exhausted(self, operation: str, exc: BaseException, attempts: int) -> None:
        metrics.record_transfer_operation(operation, "conflict")
        log_json(
            logger,
            {
                "event": "transfer.conflict_exhausted",
                "operation": operation,
                "attempts": attempts,
                "error_class": exc.__class__.__name__,
            },
            level=logging.ERROR,
        )
        if is_lock_error(exc):
            metrics.increment_lock_wait_timeout()
            raise AppError(
                ErrorCatalog.LOCK_TIMEOUT,
                details={"message": f"stock transfer {operation} timed out waiting for a lock", "attempts": attempts},
            ) from exc
        raise AppError(
            ErrorCatalog.INTERNAL_ERROR,
            details={"message": f"stock transfer {operation} kept conflicting with concurrent updates", "attempts": attempts},
        ) from exc
