from functools import lru_cache

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from glycorisk.core.config import get_settings


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(database_uri: str, **kwargs) -> Engine:
    """Build an engine for the given URI.

    Postgres gets the pooled configuration used in production. SQLite is
    used for local runs and tests and has foreign keys switched on so owner
    references are enforced the same way.
    """
    if database_uri.startswith("sqlite"):
        engine = create_engine(database_uri, connect_args={"check_same_thread": False}, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine
    return create_engine(
        database_uri,
        pool_size=20,
        max_overflow=30,
        pool_recycle=300,      # Recycle connections every 5 minutes
        pool_pre_ping=True,    # Validate connections before use
        pool_timeout=45,
        echo=False,
        **kwargs,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@lru_cache
def get_session_factory() -> sessionmaker:
    return create_session_factory(create_db_engine(get_settings().SQLALCHEMY_DATABASE_URI))

