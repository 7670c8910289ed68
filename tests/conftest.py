import importlib
import os
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from fastapi.testclient import TestClient

from tests.db_utils import create_postgres_test_database, sqlite_test_url

# Modules that read settings at import time and must see the per-test database.
_RELOADED_MODULES = (
    "app.stockflow.core.config",
    "app.stockflow.db.session",
    "app.main",
)


def _test_database(tmp_path: Path):
    base_url = os.getenv("DATABASE_URL", "")
    if base_url.startswith("postgres"):
        return create_postgres_test_database(base_url)
    return sqlite_test_url(tmp_path), None


def _run_migrations(database_url: str) -> None:
    config = Config("alembic.ini")
    config.set_main_option("sqlalchemy.url", database_url)
    command.upgrade(config, "head")


def _build_app(database_url: str):
    os.environ["DATABASE_URL"] = database_url
    os.environ["SECRET_KEY"] = "test-secret"
    for name in _RELOADED_MODULES:
        importlib.reload(importlib.import_module(name))
    main = importlib.import_module("app.main")
    session = importlib.import_module("app.stockflow.db.session")
    return main.create_app(), session


@pytest.fixture()
def client(tmp_path: Path):
    database_url, cleanup = _test_database(tmp_path)
    os.environ["DATABASE_URL"] = database_url
    _run_migrations(database_url)
    app, session = _build_app(database_url)

    with TestClient(app) as test_client:
        yield test_client

    session.engine.dispose()
    if cleanup:
        cleanup()


@pytest.fixture()
def session_factory(client):
    from app.stockflow.db.session import SessionLocal

    return SessionLocal


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()
