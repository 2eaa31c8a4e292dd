"""
Task ORM Model
==============

A task posted on the marketplace. Task CRUD is handled elsewhere; this package
only needs the table so messages can reference a task and conversation
summaries can show the task name, price and time.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from sqlalchemy import TEXT, Boolean, DateTime, ForeignKey, Numeric, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from handygo.database.config.connection_engine import declarativeBase


class Task(declarativeBase):
    """
    ORM model for the `task` table.

    Attributes
    ----------
    id : UUID
        Primary key.
    user_id : UUID
        Owner of the task (`app_user.id`).
    name, description, location, category, type : str | None
        Free-text task details.
    price : Decimal | None
        Offered reward.
    time : datetime
        When the task was posted.
    completed : bool
        Whether the task has been marked as done.
    """

    __tablename__ = "task"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    user_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("app_user.id"), nullable=False)
    name: Mapped[str] = mapped_column(TEXT, nullable=False)
    description: Mapped[str | None] = mapped_column(TEXT, nullable=True)
    location: Mapped[str | None] = mapped_column(TEXT, nullable=True)
    category: Mapped[str | None] = mapped_column(TEXT, nullable=True)
    type: Mapped[str | None] = mapped_column(TEXT, nullable=True)
    price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __init__(self, user_id: UUID, name: str, task_id: UUID | None = None, **details):
        self.id = task_id or uuid.uuid4()
        self.user_id = user_id
        self.name = name
        self.completed = False
        for key in ("description", "location", "category", "type", "price", "time"):
            if key in details:
                setattr(self, key, details[key])

    def __str__(self) -> str:
        return f"Task: id:{self.id}, name: {self.name}, owner: {self.user_id}"
