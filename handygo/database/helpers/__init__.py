"""
The `helpers` package provides utility functions and decorators
that support database operations and cross-cutting concerns.

Contents
--------
- transactionManagement
    - Context variable (`db_session_context`) for propagating the active session across function calls
    - `@transactional` decorator: reuses an active session or opens, commits, rolls back and closes one
"""
