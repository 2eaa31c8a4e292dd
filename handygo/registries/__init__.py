"""
Transient registries.

- store: `ExpiringStore` interface and the thread-safe in-memory backend
- verification: `VerificationCodeRegistry` (email -> 6-digit code, 5 minutes)
- sessions: `SessionRegistry` (token -> user snapshot, sliding 7 days) and `SessionSweeper`

`session_registry` and `verification_registry` are the process-wide instances,
built from `settings` when this package is first imported.
"""

from datetime import timedelta

from handygo.database.config.config import settings
from handygo.registries.sessions import SessionRegistry, SessionSweeper
from handygo.registries.store import create_store
from handygo.registries.verification import VerificationCodeRegistry, VerificationOutcome

session_registry = SessionRegistry(
    create_store(settings.REGISTRY_BACKEND),
    lifetime=timedelta(seconds=settings.SESSION_LIFETIME_SECONDS),
)
"""Process-wide session registry."""

verification_registry = VerificationCodeRegistry(
    create_store(settings.REGISTRY_BACKEND),
    ttl=timedelta(seconds=settings.VERIFICATION_CODE_TTL_SECONDS),
)
"""Process-wide verification code registry."""

__all__ = [
    "SessionRegistry",
    "SessionSweeper",
    "VerificationCodeRegistry",
    "VerificationOutcome",
    "session_registry",
    "verification_registry",
]
