"""
Session cookie utilities.

The `session-id` cookie carries the opaque session token wrapped in a signed
JWS (`{"sid": <token>}`, HMAC keyed by `settings.SECRET_KEY`). The signature
only makes the cookie tamper-evident; expiry is tracked server-side by the
session registry, so the JWT carries no `exp` claim.

Functions
---------
sign_session_token(token: str) -> str
    Wrap a session token for transport.
read_session_token(cookie: str | None) -> str | None
    Verify the signature and return the token, or None if absent or tampered.
set_session_cookie(response, token) / clear_session_cookie(response)
    Cookie contract: httpOnly, path "/", SameSite lax, max-age = session lifetime.
get_current_user / get_optional_user
    FastAPI dependencies resolving the cookie into a user snapshot.
"""

import logging
from typing import Optional

from fastapi import Cookie, Response
from jose import JWTError, jwt

from handygo.api.exceptions import AuthenticationError
from handygo.database.config.config import settings
from handygo.registries import session_registry

logger = logging.getLogger(__name__)

SESSION_COOKIE = "session-id"
"""Name of the session cookie."""


def sign_session_token(token: str) -> str:
    """
    Sign a session token for the cookie.

    Parameters
    ----------
    token : str
        Opaque token returned by `SessionRegistry.create`.

    Returns
    -------
    str
        Compact JWS string.
    """
    return jwt.encode({"sid": token}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def read_session_token(cookie: Optional[str]) -> Optional[str]:
    """
    Verify a cookie value and return the session token it carries.

    Returns
    -------
    str | None
        The token if the signature is valid, otherwise None. A tampered
        cookie is treated exactly like a missing one.
    """
    if not cookie:
        return None
    try:
        payload = jwt.decode(cookie, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.info("Rejected session cookie: %s", e)
        return None
    token = payload.get("sid")
    return token if isinstance(token, str) else None


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=SESSION_COOKIE,
        value=sign_session_token(token),
        max_age=settings.SESSION_LIFETIME_SECONDS,
        path="/",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=SESSION_COOKIE,
        path="/",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )


def get_optional_user(session_id: Optional[str] = Cookie(None, alias=SESSION_COOKIE)) -> Optional[dict]:
    """Resolve the session cookie into a user snapshot, or None (fails closed)."""
    return session_registry.resolve(read_session_token(session_id))


def get_current_user(session_id: Optional[str] = Cookie(None, alias=SESSION_COOKIE)) -> dict:
    """Like `get_optional_user`, but an anonymous request is a 401."""
    user = get_optional_user(session_id)
    if user is None:
        raise AuthenticationError("Unauthorized")
    return user
