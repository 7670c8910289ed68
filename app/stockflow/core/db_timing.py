from __future__ import annotations

from contextvars import ContextVar, Token
from dataclasses import dataclass


@dataclass
class DbTimer:
    total_ms: float = 0.0


# Sync endpoints run in a worker thread with a copy of the request context, so
# the accumulator is a shared mutable object rather than a plain float.
_db_timer: ContextVar[DbTimer | None] = ContextVar("db_timer", default=None)


def start_db_timer() -> Token:
    return _db_timer.set(DbTimer())


def stop_db_timer(token: Token) -> None:
    _db_timer.reset(token)


def add_db_time(delta_ms: float) -> None:
    timer = _db_timer.get()
    if timer is None:
        return
    timer.total_ms += delta_ms


def get_db_time_ms() -> float | None:
    timer = _db_timer.get()
    if timer is None:
        return None
    return timer.total_ms
