"""
DAOs Package - Data Access Layer (SQLAlchemy 2.0)
=================================================

The `daos` package encapsulates all interactions with the SQLAlchemy ORM
entities, providing small CRUD APIs for the service layer while hiding query
details.

Conventions
-----------
- Session lifecycle (open/commit/rollback) is handled by callers (`@transactional`)
- DAOs log and surface exceptions so upper layers decide error policy

Contents
--------
- UserDao
    Credential store: create users, look them up by id / username / email,
    apply sparse profile updates.

- UserMessagesDao
    Direct messages: append, fetch one task thread between two users,
    mark messages as read.

- TaskDao
    Existence lookups of tasks referenced by messages.

- ConversationDao
    Thread index: atomic upsert per (task, canonical pair), per-user summaries.
"""
