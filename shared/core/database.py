from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from shared.core.config import LEDGER_DATABASE_URL, settings

Base = declarative_base()


def make_engine(url: str, **kwargs):
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        engine = create_engine(url, **kwargs)

        # pysqlite defers BEGIN until the first write, so a read-then-write
        # is not serialized; take the write lock when the transaction opens
        @event.listens_for(engine, "connect")
        def disable_pysqlite_begin(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return engine

    engine = create_engine(
        url,
        pool_pre_ping=True,
        pool_recycle=300,
        pool_size=settings.DB_POOL_SIZE,          # max idle connections
        max_overflow=settings.DB_MAX_OVERFLOW,    # max temporary extra connections
        pool_timeout=30,                          # wait time before failing
        **kwargs
    )

    if settings.DB_STATEMENT_TIMEOUT_MS:
        @event.listens_for(engine, "connect")
        def set_statement_timeout(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute(
                f"SET statement_timeout = {int(settings.DB_STATEMENT_TIMEOUT_MS)}")
            cursor.close()

    return engine


# Ledger DB
ledger_engine = make_engine(LEDGER_DATABASE_URL)
LedgerSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, expire_on_commit=False, bind=ledger_engine)

# Dependency


def get_db():
    db = LedgerSessionLocal()
    try:
        yield db
    finally:
        db.close()
