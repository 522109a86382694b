def test_get_engine_kwargs_sqlite_has_check_same_thread():
    from carshopwatch.database import database as db

    kwargs = db.get_engine_kwargs("sqlite:///./carshopwatch.db")
    assert "connect_args" in kwargs
    assert kwargs["connect_args"]["check_same_thread"] is False
    # SQLite should not require pool sizing knobs.
    assert "pool_size" not in kwargs
    assert "max_overflow" not in kwargs
    assert kwargs["pool_pre_ping"] is True


def test_get_engine_kwargs_postgres_has_conservative_pooling(monkeypatch):
    from carshopwatch.database import database as db

    monkeypatch.setenv("DB_POOL_SIZE", "3")
    monkeypatch.setenv("DB_MAX_OVERFLOW", "2")
    monkeypatch.setenv("DB_POOL_TIMEOUT_SEC", "10")

    kwargs = db.get_engine_kwargs("postgresql+psycopg://u:p@localhost:5432/db")
    assert "connect_args" not in kwargs
    assert kwargs["pool_pre_ping"] is True
    assert kwargs["pool_size"] == 3
    assert kwargs["max_overflow"] == 2
    assert kwargs["pool_timeout"] == 10


def test_sqlite_url_detection():
    from carshopwatch.database import database as db

    assert db._is_sqlite_url("sqlite:///./carshopwatch.db") is True
    assert db._is_sqlite_url("postgresql+psycopg://u:p@localhost/db") is False


def test_schema_has_partial_unique_index_on_active_entries(engine):
    from sqlalchemy import inspect

    indexes = {idx["name"]: idx for idx in inspect(engine).get_indexes("monitored_users")}
    assert "uq_monitored_users_active_reason" in indexes
    assert indexes["uq_monitored_users_active_reason"]["unique"]
    assert indexes["uq_monitored_users_active_reason"]["column_names"] == ["user_id", "reason"]


def test_migration_runner_reports_missing_schema(tmp_path):
    from sqlalchemy import create_engine
    from carshopwatch.database import migrate_runner

    engine = create_engine(f"sqlite:///{tmp_path / 'empty.db'}")
    missing = migrate_runner._missing_requirements(engine)
    assert "missing table: monitored_users" in missing
    assert "missing index: monitored_users.uq_monitored_users_active_reason" in missing


def test_migration_runner_accepts_current_schema(engine):
    from carshopwatch.database import migrate_runner

    assert migrate_runner._missing_requirements(engine) == []
