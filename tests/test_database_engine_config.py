def test_get_engine_kwargs_sqlite_has_check_same_thread():
    from memoassist.database import database as db

    kwargs = db.get_engine_kwargs("sqlite:///./memoassist.db")
    assert "connect_args" in kwargs
    assert kwargs["connect_args"]["check_same_thread"] is False
    # SQLite should not require pool sizing knobs.
    assert "pool_size" not in kwargs
    assert "max_overflow" not in kwargs
    assert kwargs["pool_pre_ping"] is True


def test_get_engine_kwargs_postgres_has_conservative_pooling(monkeypatch):
    from memoassist.database import database as db

    monkeypatch.setenv("DB_POOL_SIZE", "3")
    monkeypatch.setenv("DB_MAX_OVERFLOW", "2")
    monkeypatch.setenv("DB_POOL_TIMEOUT_SEC", "10")

    kwargs = db.get_engine_kwargs("postgresql+psycopg://u:p@localhost:5432/db")
    assert "connect_args" not in kwargs
    assert kwargs["pool_pre_ping"] is True
    assert kwargs["pool_size"] == 3
    assert kwargs["max_overflow"] == 2
    assert kwargs["pool_timeout"] == 10


def test_debug_env_enables_echo(monkeypatch):
    from memoassist.database import database as db

    monkeypatch.setenv("DEBUG", "true")
    assert db.get_engine_kwargs("sqlite:///./memoassist.db")["echo"] is True


def test_sqlite_url_detection():
    from memoassist.database import database as db

    assert db._is_sqlite_url("sqlite:///./memoassist.db") is True
    assert db._is_sqlite_url("postgresql+psycopg://u:p@localhost/db") is False
    assert db._is_sqlite_url("") is False


def test_memo_table_registered_on_init(tmp_path):
    from sqlalchemy import inspect
    from memoassist.database import database as db

    engine = db.build_engine(f"sqlite:///{tmp_path / 'memo.db'}")
    from memoassist.database import models  # noqa: F401
    db.Base.metadata.create_all(bind=engine)

    columns = {column["name"] for column in inspect(engine).get_columns("memos")}
    assert {"id", "type", "state", "recurrence_goal", "last_activity", "deleted_at"} <= columns
