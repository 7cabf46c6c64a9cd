"""
Database engine and session management
"""
from pathlib import Path
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from scholarship_app.config import settings


def create_db_engine(database_url: str):
    """
    Create SQLAlchemy engine for the given URL

    SQLite connections are shared across threads (FastAPI runs sync
    dependencies in a threadpool); in-memory SQLite uses a single static
    connection so every session sees the same database.
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, pool_pre_ping=True)

    connect_args = {"check_same_thread": False}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        sqlite_engine = create_engine(database_url, connect_args=connect_args, poolclass=StaticPool)
    else:
        # Make sure the directory of a file database exists
        db_path = database_url.replace("sqlite:///", "", 1)
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        sqlite_engine = create_engine(database_url, connect_args=connect_args)

    # pysqlite defers BEGIN, which breaks SAVEPOINT; emit BEGIN ourselves
    @event.listens_for(sqlite_engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(sqlite_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return sqlite_engine


engine = create_db_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """FastAPI dependency yielding a database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create all tables"""
    # Import models so they are registered on the metadata
    import scholarship_app.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
