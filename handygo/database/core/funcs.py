"""
Service-layer operations for authentication and user profiles.

Functions that touch the database are wrapped with the `@transactional`
decorator, which manages SQLAlchemy sessions and transactions automatically;
each of them accepts (and uses) an injected `session: Session`.

This module orchestrates the credential store (`UserDao`), the verification
code registry, the password hasher (`EncryptionDec`) and the email service.
Session issuance itself happens at the HTTP boundary, which owns the cookie.

Errors are raised as `handygo.api.exceptions` classes; the app turns them
into `{"error": ...}` responses.
"""

import logging
import uuid
from typing import Optional

from email_validator import EmailNotValidError, validate_email
from fastapi import BackgroundTasks
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from handygo.api.exceptions import (
    AuthenticationError,
    ConflictError,
    DomainPolicyError,
    NotFoundError,
    ValidationError,
)
from handygo.crypt.encrypt_decrypt import EncryptionDec
from handygo.database.config.config import settings
from handygo.database.daos.user_dao import UserDao
from handygo.database.entities.user import PROFILE_FIELDS, User
from handygo.database.helpers.transactionManagement import transactional
from handygo.notifications import email_service
from handygo.registries import VerificationOutcome, verification_registry
from handygo.registries.verification import normalize_email

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email/username or password"
EMAIL_TAKEN = "An account with this email already exists. Please log in instead."
USERNAME_TAKEN = "Username is already taken"
MAX_PASSWORD_BYTES = 72

_CODE_ERRORS = {
    VerificationOutcome.NO_ENTRY: "No verification code found for this email",
    VerificationOutcome.EXPIRED: "Verification code has expired",
    VerificationOutcome.MISMATCH: "Invalid verification code",
}


def parse_uuid(value, field: str) -> uuid.UUID:
    """Parse an identifier received from a client, or raise `ValidationError`."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}") from None


def validate_email_address(email: Optional[str]) -> str:
    """
    Check the format of an email address and return it normalized
    (trimmed, lower-cased).

    Raises
    ------
    ValidationError
        If the address is missing or malformed.
    """
    if not email or not email.strip():
        raise ValidationError("Email is required")
    normalized = normalize_email(email)
    try:
        validate_email(normalized, check_deliverability=False)
    except EmailNotValidError:
        raise ValidationError("Invalid email address") from None
    return normalized


def check_email_domain(email: str) -> None:
    """
    Enforce the registration domain allow-list (`settings.ALLOWED_EMAIL_DOMAINS`).

    Raises
    ------
    DomainPolicyError
        If the address does not belong to an allowed domain.
    """
    domains = [d.lower().lstrip("@") for d in settings.ALLOWED_EMAIL_DOMAINS]
    if not any(email.endswith("@" + domain) for domain in domains):
        allowed = ", ".join("@" + d for d in domains)
        raise DomainPolicyError(f"Please use an Aalto email address ({allowed})")


def check_password_length(password: str) -> None:
    """
    Reject passwords bcrypt cannot hash (more than 72 UTF-8 bytes once trimmed).

    Raises
    ------
    ValidationError
        If the password is too long.
    """
    if len(password.strip().encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes long")


def conflict_from_integrity_error(error: IntegrityError) -> ConflictError:
    """Translate a unique-constraint violation on `app_user` into a user-facing conflict."""
    if "email" in str(error.orig).lower():
        return ConflictError(EMAIL_TAKEN)
    return ConflictError(USERNAME_TAKEN)


def send_verification_code(email: Optional[str], background_tasks: Optional[BackgroundTasks] = None) -> dict:
    """
    Issue a verification code for an email address and dispatch it.

    Parameters
    ----------
    email : str
        Address to verify; must be well formed and in an allowed domain.
    background_tasks : BackgroundTasks, optional
        When given, the email is sent after the response is returned.

    Returns
    -------
    dict
        - With an SMTP relay: {'message': 'Verification code sent to your email'}
        - Without one (dev mode): {'message': ..., 'code': <code>, 'devMode': True}

    Notes
    -----
    - Any previous code for the same address is replaced.
    - Delivery failures never fail this call; they are logged by
      `email_service.deliver_verification_code`.
    """
    normalized = validate_email_address(email)
    check_email_domain(normalized)

    code = verification_registry.issue(normalized)
    minutes = max(1, int(verification_registry.ttl.total_seconds() // 60))

    if not email_service.is_configured():
        logger.info("[DEV] Verification code for %s: %s", normalized, code)
        return {
            "message": "Verification code sent (dev mode - no email service configured)",
            "code": code,
            "devMode": True,
        }

    if background_tasks is not None:
        background_tasks.add_task(email_service.deliver_verification_code, normalized, code, minutes)
    else:
        email_service.deliver_verification_code(normalized, code, minutes)
    logger.info("[Email] Verification code queued for %s", normalized)
    return {"message": "Verification code sent to your email"}


def check_verification_code(email: Optional[str], code: Optional[str]) -> dict:
    """
    Verify (and consume) a code previously issued for an email address.

    Returns
    -------
    dict
        {'message': 'Verification code is valid'}

    Raises
    ------
    ValidationError
        If email or code is missing.
    AuthenticationError
        If there is no code, it expired, or it does not match.
    """
    if not email or not code:
        raise ValidationError("Email and code are required")

    outcome = verification_registry.verify(normalize_email(email), code.strip())
    if outcome is not VerificationOutcome.VALID:
        raise AuthenticationError(_CODE_ERRORS[outcome])
    return {"message": "Verification code is valid"}


@transactional
def register_user(
    session: Session,
    username: Optional[str],
    email: Optional[str],
    password: Optional[str],
    verification_code: Optional[str] = None,
) -> dict:
    """
    Create a new account.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session (injected by @transactional).
    username : str
        Desired username (unique, case-insensitive).
    email : str
        Email address in an allowed domain (unique, case-insensitive).
    password : str
        Plaintext password; stored as a bcrypt hash.
    verification_code : str, optional
        Code obtained from `send_verification_code`.

    Returns
    -------
    dict
        {'message': 'User registered successfully', 'user': <user without password hash>}

    Notes
    -----
    - The duplicate checks run before the code is looked at, so an
      existing user is told to log in without burning their code. The code
      itself is verified after the insert flushes: losing a race on the
      unique constraints leaves it usable.
    - Registration without a code is accepted unless
      `settings.REQUIRE_VERIFICATION_CODE` is set.
    - The new user is not logged in.
    """
    if not username or not username.strip() or not email or not password:
        raise ValidationError("Username, email and password are required")

    normalized = validate_email_address(email)
    check_email_domain(normalized)

    user_dao = UserDao()
    if user_dao.fetchUserByEmail(session, normalized):
        raise ConflictError(EMAIL_TAKEN)
    if user_dao.fetchUser(session, username):
        raise ConflictError(USERNAME_TAKEN)

    if not verification_code and settings.REQUIRE_VERIFICATION_CODE:
        raise ValidationError("Verification code is required")
    check_password_length(password)

    enc = EncryptionDec()
    user = User(
        username=username.strip(),
        email=normalized,
        password_hash=enc.hash_password(password.strip()),
    )
    try:
        user_dao.createUser(session=session, user_data=user)
    except IntegrityError as e:
        raise conflict_from_integrity_error(e) from e

    # consumed only once the row is in; a rejected code rolls the insert back
    if verification_code:
        outcome = verification_registry.verify(normalized, verification_code.strip())
        if outcome is not VerificationOutcome.VALID:
            raise AuthenticationError("Invalid or expired verification code")
    else:
        logger.warning("Registering %s without a verification code", normalized)

    # a code left over from an unverified attempt must not outlive the account
    verification_registry.discard(normalized)
    logger.info("Registered user %s (%s)", user.id, normalized)
    return {"message": "User registered successfully", "user": user.to_safe_dict()}


@transactional
def login_user(
    session: Session,
    password: Optional[str],
    email: Optional[str] = None,
    username: Optional[str] = None,
) -> dict:
    """
    Authenticate a user by email (preferred) or username, and password.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session (injected by @transactional).
    password : str
        Plaintext password to verify.
    email : str, optional
        Email identifier; used when present.
    username : str, optional
        Username identifier; used when no email is given.

    Returns
    -------
    dict
        The user without the password hash.

    Raises
    ------
    ValidationError
        If no identifier or no password is supplied.
    AuthenticationError
        With the same message whether the user is unknown or the password wrong.
    """
    if not password or not ((email and email.strip()) or (username and username.strip())):
        raise ValidationError("Email or username and password are required")

    user_dao = UserDao()
    enc = EncryptionDec()
    if email and email.strip():
        users_fetched = user_dao.fetchUserByEmail(session, email)
    else:
        users_fetched = user_dao.fetchUser(session, username)

    if len(users_fetched) == 0:
        raise AuthenticationError(INVALID_CREDENTIALS)
    user = users_fetched[0]
    if not enc.check_passwords(password.strip(), user.password_hash):
        raise AuthenticationError(INVALID_CREDENTIALS)

    return user.to_safe_dict()


@transactional
def get_user_profile(session: Session, user_id) -> dict:
    """
    Fetch a user by id.

    Returns
    -------
    dict
        The user without the password hash.

    Raises
    ------
    NotFoundError
        If no user has that id.
    """
    user = UserDao().fetchUserById(session, parse_uuid(user_id, "user id"))
    if user is None:
        raise NotFoundError("User not found")
    return user.to_safe_dict()


@transactional
def update_profile(session: Session, user_id, fields: dict) -> dict:
    """
    Apply a sparse update to the caller's profile.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session (injected by @transactional).
    user_id : UUID | str
        The authenticated caller.
    fields : dict
        Only the keys the client sent, drawn from
        {name, username, avatar_url, bio, address, phone}. Keys that are absent
        are left untouched; an empty string is stored as an empty string.

    Returns
    -------
    dict
        The updated user without the password hash.

    Raises
    ------
    ValidationError
        If the update touches email/password or empties the username.
    ConflictError
        If the new username is taken.
    NotFoundError
        If the user no longer exists.
    """
    forbidden = sorted(set(fields) - set(PROFILE_FIELDS))
    if forbidden:
        raise ValidationError(f"Fields cannot be updated here: {', '.join(forbidden)}")

    user_id = parse_uuid(user_id, "user id")
    user_dao = UserDao()

    if "username" in fields:
        new_username = fields["username"]
        if not new_username or not new_username.strip():
            raise ValidationError("Username cannot be empty")
        fields = {**fields, "username": new_username.strip()}
        existing = user_dao.fetchUser(session, new_username)
        if existing and existing[0].id != user_id:
            raise ConflictError(USERNAME_TAKEN)

    try:
        user = user_dao.updateUserProfile(session, user_id, fields)
    except IntegrityError as e:
        raise conflict_from_integrity_error(e) from e
    if user is None:
        raise NotFoundError("User not found")

    return user.to_safe_dict()
