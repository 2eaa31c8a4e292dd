"""
Conversation ORM Model
=======================

The ``Conversation`` ORM model is the thread index of the direct messages: one
row per (task, unordered user pair), pointing at the most recent message.

Key features
~~~~~~~~~~~~
- UUID primary key (``id``)
- ``user1_id``/``user2_id`` hold the pair in canonical order
  (``str(user1_id) < str(user2_id)``), so both directions share a row
- ``UniqueConstraint(task_id, user1_id, user2_id)`` is the conflict target of
  the upsert performed on every new message
- ``last_message_at``/``last_message_id`` always describe the latest insert
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from handygo.database.config.connection_engine import declarativeBase


class Conversation(declarativeBase):
    """
    ORM model for the `conversation` table.

    Attributes
    ----------
    id : UUID
        Primary key. Unique identifier for the conversation.
    task_id : UUID
        Task the conversation is about.
    user1_id : UUID
        Lower participant of the canonical pair.
    user2_id : UUID
        Higher participant of the canonical pair.
    last_message_at : datetime
        Creation time of the latest message in the thread.
    last_message_id : UUID
        The latest message in the thread.
    """

    __tablename__ = "conversation"
    __table_args__ = (
        UniqueConstraint("task_id", "user1_id", "user2_id", name="uq_conversation_task_pair"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    """Primary key. UUID of the conversation."""

    task_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("task.id"), nullable=False)
    user1_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("app_user.id"), nullable=False)
    user2_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("app_user.id"), nullable=False)

    last_message_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    """Timestamp of the latest message (UTC, timezone-aware)."""

    last_message_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("message.id"), nullable=False)

    def __str__(self) -> str:
        return (
            f"Conversation: id:{self.id}, task: {self.task_id}, "
            f"users: {self.user1_id}/{self.user2_id}, last_message_at: {self.last_message_at}"
        )
