"""
Entities Package - SQLAlchemy 2.0 ORM Models (UUID + UTC)
=========================================================

The `entities` package defines the ORM models of the application, mapping
database tables to Python classes using SQLAlchemy 2.0-typed mappings.
These classes are consumed by DAOs (`daos` package).

Tech Stack & Conventions
------------------------
- PostgreSQL in production, SQLite for development and tests
- Generic `Uuid` columns (native UUID on PostgreSQL)
- Timezone-aware timestamps (UTC)
- SQLAlchemy 2.0 style `Mapped[...]` + `mapped_column(...)`

Contents
--------
- User
    Registered user: credentials (bcrypt hash) and public profile.
- Task
    Marketplace task; referenced by messages and shown in conversation summaries.
- UserMessage
    A direct message about a task, with `read_at` read-state.
- Conversation
    One row per (task, canonical user pair) pointing at the latest message.
"""
