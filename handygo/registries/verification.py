"""
Verification Code Registry

Maps a normalized email to its single live 6-digit code. Issuing a new code
replaces the previous one; a code is consumed by a successful verification and
purged when found expired.
"""

import enum
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from handygo.crypt.encrypt_decrypt import EncryptionDec
from handygo.registries.store import ExpiringStore

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VerificationOutcome(str, enum.Enum):
    VALID = "valid"
    NO_ENTRY = "no-entry"
    EXPIRED = "expired"
    MISMATCH = "mismatch"


class VerificationCodeRegistry:
    """
    Transient store of emailed verification codes.

    Parameters
    ----------
    store : ExpiringStore
        Backing store; keys are normalized emails, values are codes.
    ttl : timedelta
        Lifetime of an issued code (5 minutes by default).
    clock : callable, optional
        Returns the current aware UTC datetime; replaceable in tests.
    """

    def __init__(self, store: ExpiringStore, ttl: timedelta = timedelta(minutes=5),
                 clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.ttl = ttl
        self.clock = clock
        self._enc = EncryptionDec()

    def issue(self, email: str) -> str:
        """Generate a code for `email`, overwriting any live one, and return it."""
        key = normalize_email(email)
        code = self._enc.generate_verification_code()
        self.store.set(key, code, self.clock() + self.ttl)
        return code

    def verify(self, email: str, code: str) -> VerificationOutcome:
        """
        Check `code` against the live entry of `email`.

        `VALID` consumes the entry and `EXPIRED` purges it. `MISMATCH` and
        `NO_ENTRY` leave the store as it was.
        """
        key = normalize_email(email)
        entry = self.store.get(key)
        if entry is None:
            return VerificationOutcome.NO_ENTRY

        if entry.expired(self.clock()):
            self.store.delete(key)
            return VerificationOutcome.EXPIRED

        if not self._enc.codes_match(entry.value, code):
            return VerificationOutcome.MISMATCH

        # a concurrent verify may have consumed it between get and pop
        consumed = self.store.pop(key)
        if consumed is None or consumed.value != entry.value:
            if consumed is not None:
                self.store.set(key, consumed.value, consumed.expires_at)
            return VerificationOutcome.NO_ENTRY
        return VerificationOutcome.VALID

    def discard(self, email: str) -> None:
        self.store.delete(normalize_email(email))

    def clear(self) -> None:
        self.store.clear()
