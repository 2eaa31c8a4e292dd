"""
Connection Engine (SQLAlchemy)

Purpose
-------
Centralizes database initialization for the application:
- Builds the SQLAlchemy connection URL from environment-backed settings.
- Creates the Engine (connection pool + SQL execution entry point).
- Defines shared MetaData for table and schema objects.
- Exposes a Declarative Base class for ORM models.
- Exposes `SessionFactory`, the `sessionmaker` every transaction is opened from.

Notes
-----
- Uses `URL.create(...)` to avoid hardcoding credentials.
- `SessionFactory.configure(bind=...)` rebinds the whole service layer to
  another engine (the test suite uses an in-memory SQLite engine).
- All ORM models must inherit from `declarativeBase`.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import URL
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.schema import MetaData
from handygo.database.config.config import settings

connection_url = URL.create(
    drivername=settings.DB_DRIVER_NAME,
    username=settings.DB_USERNAME,
    password=settings.DB_PASSWORD,
    host=settings.DB_HOST,
    port=settings.DB_PORT,
    database=settings.DB_DATABASE_NAME,
)
"""Constructs the SQLAlchemy connection URL using values from Settings."""

connection_engine = create_engine(connection_url)
"""Engine object: Core interface to the database.
Responsible for managing connections, executing SQL, and pooling.
"""

SessionFactory = sessionmaker(bind=connection_engine)
"""Session factory used by `@transactional`. Rebind with `SessionFactory.configure(bind=engine)`."""

metadata = MetaData()
"""
Metadata object: Stores schema-level information about tables, constraints, indexes, etc. Shared across all models.
"""

declarativeBase = declarative_base(metadata=metadata)
"""Declarative Base: Root class for ORM models.
All model classes should inherit from this to gain ORM features and automatic schema generation.
 """


def create_tables(engine=None) -> None:
    """
    Create every table registered on `metadata` (no-op for existing tables).

    Defaults to the engine `SessionFactory` is currently bound to.
    """
    # entities must be imported so their tables are registered on `metadata`
    import handygo.database.entities.user  # noqa: F401
    import handygo.database.entities.task  # noqa: F401
    import handygo.database.entities.messages  # noqa: F401
    import handygo.database.entities.conversations  # noqa: F401

    metadata.create_all(bind=engine or SessionFactory.kw["bind"])
