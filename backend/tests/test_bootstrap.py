import pytest
from sqlalchemy import create_engine, text

from app.db import bootstrap


def _raise_error(message: str):
    raise RuntimeError(message)


def test_runtime_schema_bootstrap_raises_on_validation_failure(monkeypatch):
    monkeypatch.setattr(bootstrap.Base.metadata, "create_all", lambda bind: None)
    monkeypatch.setattr(
        bootstrap,
        "_assert_required_columns",
        lambda: _raise_error("missing required schema"),
    )

    with pytest.raises(RuntimeError, match="Runtime schema compatibility bootstrap failed"):
        bootstrap.ensure_runtime_schema_compatibility()


def test_runtime_schema_bootstrap_passes_on_fresh_database():
    bootstrap.ensure_runtime_schema_compatibility()


def test_schema_gaps_names_missing_tables_and_columns():
    engine = create_engine("sqlite+pysqlite://")
    with engine.begin() as connection:
        connection.execute(text("CREATE TABLE users (id VARCHAR(36) PRIMARY KEY, email VARCHAR(255))"))
        missing_tables, missing_columns = bootstrap.schema_gaps(connection)

    assert "courses" in missing_tables
    assert "users" not in missing_tables
    assert missing_columns == {"users": ["role"]}
    engine.dispose()
