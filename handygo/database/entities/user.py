"""
User ORM Model
==============

The ``User`` ORM model represents a registered marketplace user. It maps to the
``app_user`` table and holds the credentials (hashed password) and the public
profile shown next to tasks and messages.

Key features
~~~~~~~~~~~~
- UUID primary key (``id``)
- Unique username and unique, normalized (lower-case) email
- bcrypt password hash
- Optional profile fields (name, avatar, bio, address, phone)
"""

import uuid
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import TEXT, VARCHAR, DateTime, Index, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from handygo.database.config.connection_engine import declarativeBase

PROFILE_FIELDS = ("name", "username", "avatar_url", "bio", "address", "phone")
"""Fields a user may change through a profile update (never email or password)."""


class User(declarativeBase):
    """
    ORM model for the `app_user` table.

    Attributes
    ----------
    id : UUID
        Primary key. Unique identifier for the user.
    username : str
        Username chosen by the user (unique, compared case-insensitively).
    email : str
        Normalized email address (unique).
    password_hash : str
        bcrypt hash of the user's password.
    name, avatar_url, bio, address, phone : str | None
        Optional public profile fields.
    created_at : datetime
        Registration time (UTC).
    """

    __tablename__ = "app_user"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    """Primary key. UUID of the user."""

    username: Mapped[str] = mapped_column(VARCHAR(255), nullable=False, unique=True)
    """Username of the user (max length 255)."""

    email: Mapped[str] = mapped_column(VARCHAR(255), nullable=False, unique=True)
    """Email address of the user, stored trimmed and lower-cased."""

    password_hash: Mapped[str] = mapped_column(TEXT, nullable=False)
    """Hashed password of the user."""

    name: Mapped[str | None] = mapped_column(TEXT, nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(TEXT, nullable=True)
    bio: Mapped[str | None] = mapped_column(TEXT, nullable=True)
    address: Mapped[str | None] = mapped_column(TEXT, nullable=True)
    phone: Mapped[str | None] = mapped_column(TEXT, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    """Datetime when the user registered."""

    def __init__(self, username: str, email: str, password_hash: str, **profile):
        """
        Initialize a new User object.

        Parameters
        ----------
        username : str
            Username of the user.
        email : str
            Normalized email address.
        password_hash : str
            Already hashed password.
        **profile
            Optional profile fields (name, avatar_url, bio, address, phone).
        """
        self.id = uuid.uuid4()
        self.username = username
        self.email = email
        self.password_hash = password_hash
        for key in ("name", "avatar_url", "bio", "address", "phone"):
            setattr(self, key, profile.get(key))

    def to_safe_dict(self) -> dict:
        """Projection of the user that never contains the password hash."""
        return {
            "id": str(self.id),
            "username": self.username,
            "email": self.email,
            "name": self.name,
            "avatar_url": self.avatar_url,
            "bio": self.bio,
            "address": self.address,
            "phone": self.phone,
        }

    def __str__(self) -> str:
        return f"User: id:{self.id}, username: {self.username}, email: {self.email}"


Index("uq_app_user_username_lower", func.lower(User.username), unique=True)
"""Usernames are unique regardless of case."""
