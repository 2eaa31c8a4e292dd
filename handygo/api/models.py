"""
Pydantic models used for request/response validation and API data contracts.

Request fields the service layer validates itself (required-ness, email
format) are declared optional here so clients get the service's own error
messages rather than a generic schema error.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RegistrationDetails(BaseModel):
    """
    Represents data required to register a new user.
    """
    username: Optional[str] = None
    """Desired username."""
    email: Optional[str] = None
    """Email address in an allowed domain."""
    password: Optional[str] = None
    """Password chosen by the user."""
    verificationCode: Optional[str] = None
    """Code received by email (see /auth/send-code)."""


class EmailDetails(BaseModel):
    """Request for a verification code."""
    email: Optional[str] = None


class VerifCode(BaseModel):
    """
    Represents a request to verify an email address.
    """
    email: Optional[str] = None
    """Email address the code was sent to."""
    code: Optional[str] = None
    """Verification code provided by the user."""


class UserCredentials(BaseModel):
    """
    Represents login credentials. Either `email` or `username` identifies the user.
    """
    email: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None


class ProfileUpdate(BaseModel):
    """
    Sparse profile update. Only fields present in the body are changed; email
    and password are rejected.
    """
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    username: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None


class NewMessage(BaseModel):
    """
    Represents a new direct message about a task.
    """
    task_id: Optional[str] = Field(None, description="Task the message is about.")
    receiver_id: Optional[str] = Field(None, description="User the message is addressed to.")
    content: Optional[str] = Field(None, description="Message body.")


class UserDetails(BaseModel):
    """A user as returned by the API (never carries the password hash)."""
    id: str
    username: str
    email: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None


class AuthResponse(BaseModel):
    """Response of login, registration and profile updates."""
    message: str
    user: UserDetails


class SessionResponse(BaseModel):
    """Current session owner, or null when the request is anonymous."""
    user: Optional[UserDetails] = None
