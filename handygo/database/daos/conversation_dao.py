"""
Conversation DAO

Purpose
-------
Provides a thin data-access layer for the `Conversation` ORM entity:
- Atomic upsert of the thread row on every new message
- Per-user conversation summaries joined with task, counterpart and last message

Design
------
- Requires an active SQLAlchemy `Session` supplied by the caller.
- The caller passes the pair already in canonical order; the DAO does not
  reorder ids.
- The upsert is one `INSERT ... ON CONFLICT (task_id, user1_id, user2_id) DO
  UPDATE` statement built with the dialect's own `insert` construct
  (PostgreSQL in production, SQLite in development and tests).

Usage
-----
.. code-block:: python

    dao = ConversationDao()
    with SessionFactory() as session:
        dao.upsertConversation(session, task_id, low_id, high_id, message.id, message.created_at)
        summaries = dao.fetchConversationSummariesByUserId(session, low_id)
        session.commit()

Error Handling
--------------
- Methods log `Error in ConversationDao.<method>` and re-raise.
"""

import logging
import uuid
from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, case, desc, or_
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session, aliased

from handygo.database.entities.conversations import Conversation
from handygo.database.entities.messages import UserMessage
from handygo.database.entities.task import Task
from handygo.database.entities.user import User

logger = logging.getLogger(__name__)

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class ConversationDao:
    """
    Data Access Object (DAO) for managing Conversation entities.
    """

    def upsertConversation(
        self,
        session: Session,
        task_id: UUID,
        user1_id: UUID,
        user2_id: UUID,
        message_id: UUID,
        timestamp: datetime,
    ) -> None:
        """
        Insert the thread row or, when it already exists, point it at the new message.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        task_id : UUID
            Task of the thread.
        user1_id, user2_id : UUID
            Participants in canonical order.
        message_id : UUID
            The message just stored.
        timestamp : datetime
            Creation time of that message.

        Notes
        -----
        `last_message_at`/`last_message_id` are overwritten unconditionally:
        the latest write wins, even if its timestamp is older.
        """
        try:
            dialect = session.get_bind().dialect.name
            insert = _UPSERT_INSERTS.get(dialect)
            if insert is None:
                raise NotImplementedError(f"Conversation upsert is not supported on {dialect}")

            stmt = insert(Conversation).values(
                id=uuid.uuid4(),
                task_id=task_id,
                user1_id=user1_id,
                user2_id=user2_id,
                last_message_at=timestamp,
                last_message_id=message_id,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["task_id", "user1_id", "user2_id"],
                set_={
                    "last_message_at": stmt.excluded.last_message_at,
                    "last_message_id": stmt.excluded.last_message_id,
                },
            )
            session.execute(stmt)
        except Exception as e:
            logger.error(f"Error in ConversationDao.upsertConversation. Error Message: {e}")
            raise e

    def fetchConversationSummariesByUserId(self, session: Session, user_id: UUID):
        """
        Fetch one summary row per conversation the user takes part in,
        most recently active first.

        Returns
        -------
        list[Row]
            Rows labelled `conversation_id, task_id, last_message_at,
            last_message_id, other_user_id, task_name, task_price, task_time,
            other_username, other_name, other_avatar_url, last_message_content,
            last_message_created_at`.
        """
        try:
            other = aliased(User)
            other_user_id = case(
                (Conversation.user1_id == user_id, Conversation.user2_id),
                else_=Conversation.user1_id,
            )
            summaries = (
                session.query(
                    Conversation.id.label("conversation_id"),
                    Conversation.task_id,
                    Conversation.last_message_at,
                    Conversation.last_message_id,
                    other_user_id.label("other_user_id"),
                    Task.name.label("task_name"),
                    Task.price.label("task_price"),
                    Task.time.label("task_time"),
                    other.username.label("other_username"),
                    other.name.label("other_name"),
                    other.avatar_url.label("other_avatar_url"),
                    UserMessage.content.label("last_message_content"),
                    UserMessage.created_at.label("last_message_created_at"),
                )
                .select_from(Conversation)
                .outerjoin(Task, Conversation.task_id == Task.id)
                .outerjoin(
                    other,
                    or_(
                        and_(Conversation.user1_id == user_id, Conversation.user2_id == other.id),
                        and_(Conversation.user2_id == user_id, Conversation.user1_id == other.id),
                    ),
                )
                .outerjoin(UserMessage, Conversation.last_message_id == UserMessage.id)
                .filter(or_(Conversation.user1_id == user_id, Conversation.user2_id == user_id))
                .order_by(desc(Conversation.last_message_at))
                .all()
            )
            return summaries
        except Exception as e:
            logger.error(f"Error in ConversationDao.fetchConversationSummariesByUserId. Error Message: {e}")
            raise e
