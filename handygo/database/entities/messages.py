"""
UserMessage ORM Model
=====================

The ``UserMessage`` ORM model represents one direct message exchanged between
two users about a task. Messages are append-only: after insert only
``read_at`` changes, and only once (null -> timestamp).

Key features
~~~~~~~~~~~~
- UUID primary key (``id``)
- Foreign keys to the task and to both participants
- Timezone-aware ``created_at`` and nullable ``read_at`` (UTC)
"""

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import TEXT, DateTime, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from handygo.database.config.connection_engine import declarativeBase


def isoformat_utc(value: datetime | None) -> str | None:
    """ISO-8601 form of a stored timestamp. SQLite returns naive values; they are UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class UserMessage(declarativeBase):
    """
    ORM model for the `message` table.

    Attributes
    ----------
    id : UUID
        Primary key. Unique identifier for the message.
    task_id : UUID
        Task the message is about.
    sender_id : UUID
        Author of the message.
    receiver_id : UUID
        Addressee of the message.
    content : str
        Text of the message.
    created_at : datetime
        Time the message was stored.
    read_at : datetime | None
        Time the receiver first read the message; None while unread.
    """

    __tablename__ = "message"
    __table_args__ = (
        Index("ix_message_task_pair", "task_id", "sender_id", "receiver_id"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    """Primary key. UUID of the message."""

    task_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("task.id"), nullable=False)
    sender_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("app_user.id"), nullable=False)
    receiver_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("app_user.id"), nullable=False)

    content: Mapped[str] = mapped_column(TEXT, nullable=False)
    """Text content of the message (cannot be null)."""

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __init__(
        self,
        message_id: UUID,
        task_id: UUID,
        sender_id: UUID,
        receiver_id: UUID,
        content: str,
        created_at: datetime,
    ):
        self.id = message_id
        self.task_id = task_id
        self.sender_id = sender_id
        self.receiver_id = receiver_id
        self.content = content
        self.created_at = created_at
        self.read_at = None

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "task_id": str(self.task_id),
            "sender_id": str(self.sender_id),
            "receiver_id": str(self.receiver_id),
            "content": self.content,
            "created_at": isoformat_utc(self.created_at),
            "read_at": isoformat_utc(self.read_at),
        }

    def __str__(self) -> str:
        return (
            f"Message: id:{self.id}, "
            f"task: {self.task_id}, "
            f"from: {self.sender_id}, to: {self.receiver_id}, "
            f"time_created: {self.created_at}"
        )
