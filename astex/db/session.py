from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool

from astex.core.config import settings, normalize_database_url

DATABASE_URL = normalize_database_url(settings.DATABASE_URL)


def enable_sqlite_foreign_keys(engine):
    """SQLite ignores REFERENCES clauses unless the pragma is set per connection"""

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def build_engine(url: str):
    if url.startswith("sqlite"):
        return enable_sqlite_foreign_keys(create_engine(
            url,
            connect_args={"check_same_thread": False},
            echo=settings.DEBUG,
        ))

    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
        echo=settings.DEBUG,
    )


engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """Database dependency"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
