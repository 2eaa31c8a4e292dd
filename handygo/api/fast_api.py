"""
FastAPI Router - Auth • Users • Messages
========================================

Purpose
-------
Defines the HTTP API for:
- Authentication: send/verify email code, register, login, logout, current session
- Users: public profile, sparse profile update
- Messages: send, read a task thread (marks it read), open a thread, list conversations

Key Notes
---------
- Input validation via Pydantic models in `handygo.api.models`; business
  validation in the service layer (`handygo.database.core`).
- Auth cookie: `session-id` (signed session token, see `handygo.api.utils`).
- Service errors (`handygo.api.exceptions`) become `{"error": ...}` responses
  through the handlers registered in `handygo.main`.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Cookie, Depends, Response

from handygo.api.exceptions import ValidationError
from handygo.api.models import (
    AuthResponse,
    EmailDetails,
    NewMessage,
    ProfileUpdate,
    RegistrationDetails,
    SessionResponse,
    UserCredentials,
    UserDetails,
    VerifCode,
)
from handygo.api.utils import (
    SESSION_COOKIE,
    clear_session_cookie,
    get_current_user,
    get_optional_user,
    read_session_token,
    set_session_cookie,
)
from handygo.database.core.funcs import (
    check_verification_code,
    get_user_profile,
    login_user,
    register_user,
    send_verification_code,
    update_profile,
)
from handygo.database.core.message_funcs import (
    get_conversation_messages,
    get_or_create_conversation,
    get_user_conversations,
    mark_conversation_as_read,
    mark_message_as_read,
    send_message,
)
from handygo.registries import session_registry

router = APIRouter()
"""Creates the FastAPI router in which we define its routes"""


# -----------------------
# Auth
# -----------------------

@router.post('/auth/send-code')
def send_code(data: EmailDetails, background_tasks: BackgroundTasks):
    """Email a 6-digit verification code (5 minutes) to an allowed address.

    Response:
        200: {'message'} or, without an email relay, {'message', 'code', 'devMode': true}
        400: missing/malformed email or domain not allowed
    """
    return send_verification_code(email=data.email, background_tasks=background_tasks)


@router.post('/auth/verify-code')
def verify_code(data: VerifCode):
    """Check (and consume) a verification code.

    Response:
        200: {'message': 'Verification code is valid'}
        400: missing fields
        401: no code, expired code, or wrong code
    """
    return check_verification_code(email=data.email, code=data.code)


@router.post('/auth/registration', status_code=201, response_model=AuthResponse)
def register(data: RegistrationDetails):
    """Register a new user account. Does not log the user in.

    Response:
        201: {'message', 'user'}
        400: validation, domain policy or duplicate email/username
        401: verification code rejected
    """
    return register_user(
        username=data.username,
        email=data.email,
        password=data.password,
        verification_code=data.verificationCode,
    )


@router.post('/auth/login', response_model=AuthResponse)
def login(data: UserCredentials, response: Response):
    """Authenticate by email or username and set the signed `session-id` cookie.

    Response:
        200: {'message', 'user'}
        401: {'error': 'Invalid email/username or password'}
    """
    user = login_user(password=data.password, email=data.email, username=data.username)
    token = session_registry.create(user)
    set_session_cookie(response, token)
    return {"message": f"Logged in as {user['email']}", "user": user}


@router.post('/auth/logout')
def logout(response: Response, session_id: Optional[str] = Cookie(None, alias=SESSION_COOKIE)):
    """Revoke the current session (if any) and clear the cookie. Always succeeds."""
    session_registry.revoke(read_session_token(session_id))
    clear_session_cookie(response)
    return {"message": "Session deleted."}


@router.get('/auth/session', response_model=SessionResponse)
def current_session(user: Optional[dict] = Depends(get_optional_user)):
    """Return the user behind the session cookie, or null."""
    return {"user": user}


# -----------------------
# Users
# -----------------------

@router.put('/users/me', response_model=AuthResponse)
def update_me(
    data: ProfileUpdate,
    user: dict = Depends(get_current_user),
    session_id: Optional[str] = Cookie(None, alias=SESSION_COOKIE),
):
    """Apply a sparse update to the caller's profile and refresh the session snapshot."""
    updated = update_profile(user_id=user["id"], fields=data.model_dump(exclude_unset=True))
    session_registry.refresh_user(read_session_token(session_id), updated)
    return {"message": "Profile updated", "user": updated}


@router.get('/users/{user_id}', response_model=UserDetails)
def show_user(user_id: str):
    """Public profile of a user (404 if unknown)."""
    return get_user_profile(user_id=user_id)


# -----------------------
# Messages
# -----------------------

@router.post('/messages', status_code=201)
def new_message(data: NewMessage, user: dict = Depends(get_current_user)):
    """Send a message about a task to another user."""
    return send_message(
        task_id=data.task_id,
        sender_id=user["id"],
        receiver_id=data.receiver_id,
        content=data.content,
    )


@router.get('/messages/conversations')
def user_conversations(user: dict = Depends(get_current_user)):
    """List the caller's conversations, most recently active first."""
    return get_user_conversations(user_id=user["id"])


@router.get('/messages/task/{task_id}')
def conversation_messages(task_id: str, otherUserId: Optional[str] = None, user: dict = Depends(get_current_user)):
    """Messages between the caller and `otherUserId` on a task; marks the
    messages addressed to the caller as read."""
    if not otherUserId:
        raise ValidationError("Missing required parameters: taskId, otherUserId")
    messages = get_conversation_messages(task_id=task_id, user_id=user["id"], other_user_id=otherUserId)
    mark_conversation_as_read(task_id=task_id, reader_id=user["id"], other_user_id=otherUserId)
    return messages


@router.get('/messages/conversation/{task_id}')
def open_conversation(task_id: str, otherUserId: Optional[str] = None, user: dict = Depends(get_current_user)):
    """Open a thread: its messages, or an empty list when nobody wrote yet."""
    if not otherUserId:
        raise ValidationError("Missing required parameters: taskId, otherUserId")
    return get_or_create_conversation(task_id=task_id, user_id=user["id"], other_user_id=otherUserId)


@router.post('/messages/{message_id}/read')
def read_message(message_id: str, user: dict = Depends(get_current_user)):
    """Mark one message addressed to the caller as read."""
    return {"updated": mark_message_as_read(message_id=message_id, reader_id=user["id"])}


@router.get('/health')
def health():
    return {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()}
