"""
User Messages DAO

Purpose
-------
Data-access layer for the `UserMessage` ORM entity. Provides:
- Message creation (append-only)
- Retrieval of one task thread between two users (chronological, both directions)
- Read-state transitions (null -> timestamp, never reverted)

Design
------
- Requires an active SQLAlchemy `Session` provided by the caller.
- Read-state updates are single `UPDATE ... WHERE read_at IS NULL` statements,
  so repeating them changes nothing.

Usage
-----
.. code-block:: python

    dao = UserMessagesDao()
    with SessionFactory() as session:
        dao.createMessage(session, msg)
        rows = dao.fetchMessagesBetweenUsers(session, task_id, alice_id, bob_id)
        dao.markConversationAsRead(session, task_id, reader_id=bob_id, other_id=alice_id, timestamp=now)
        session.commit()

Error Handling
--------------
- Methods log `Error in UserMessagesDao.<method>` and re-raise.
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, asc, or_, update
from sqlalchemy.orm import Session, aliased

from handygo.database.entities.messages import UserMessage
from handygo.database.entities.user import User

logger = logging.getLogger(__name__)


class UserMessagesDao:
    """
    Data Access Object (DAO) for managing direct messages.
    """

    def createMessage(self, session: Session, userMessage: UserMessage) -> UserMessage:
        """
        Insert a message and flush it, so rows referencing it (the
        conversation's `last_message_id`) can be written in the same transaction.
        """
        try:
            session.add(userMessage)
            session.flush()
            return userMessage
        except Exception as e:
            logger.error(f"Error in UserMessagesDao.createMessage. Error Message: {e}")
            raise e

    def fetchMessagesBetweenUsers(self, session: Session, task_id: UUID, user_a: UUID, user_b: UUID):
        """
        Fetch every message of a task exchanged between two users, in either
        direction, ordered by creation time (ascending).

        Returns
        -------
        list[Row]
            Rows with the `UserMessage` entity plus the sender's and receiver's
            `username`, `name` and `avatar_url` (labelled `sender_*`/`receiver_*`).
        """
        try:
            sender = aliased(User)
            receiver = aliased(User)
            messages = (
                session.query(
                    UserMessage,
                    sender.username.label("sender_username"),
                    sender.name.label("sender_name"),
                    sender.avatar_url.label("sender_avatar_url"),
                    receiver.username.label("receiver_username"),
                    receiver.name.label("receiver_name"),
                    receiver.avatar_url.label("receiver_avatar_url"),
                )
                .outerjoin(sender, UserMessage.sender_id == sender.id)
                .outerjoin(receiver, UserMessage.receiver_id == receiver.id)
                .filter(UserMessage.task_id == task_id)
                .filter(
                    or_(
                        and_(UserMessage.sender_id == user_a, UserMessage.receiver_id == user_b),
                        and_(UserMessage.sender_id == user_b, UserMessage.receiver_id == user_a),
                    )
                )
                .order_by(asc(UserMessage.created_at))
                .all()
            )
            return messages
        except Exception as e:
            logger.error(f"Error in UserMessagesDao.fetchMessagesBetweenUsers. Error Message: {e}")
            raise e

    def markConversationAsRead(
        self, session: Session, task_id: UUID, reader_id: UUID, other_id: UUID, timestamp: datetime
    ) -> int:
        """
        Set `read_at` on every unread message of the thread addressed to `reader_id`.

        Returns
        -------
        int
            Number of messages that changed state.
        """
        try:
            result = session.execute(
                update(UserMessage)
                .where(UserMessage.task_id == task_id)
                .where(UserMessage.sender_id == other_id)
                .where(UserMessage.receiver_id == reader_id)
                .where(UserMessage.read_at.is_(None))
                .values(read_at=timestamp)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount
        except Exception as e:
            logger.error(f"Error in UserMessagesDao.markConversationAsRead. Error Message: {e}")
            raise e

    def markMessageAsRead(self, session: Session, message_id: UUID, reader_id: UUID, timestamp: datetime) -> int:
        """Set `read_at` on one message if `reader_id` is its unread receiver."""
        try:
            result = session.execute(
                update(UserMessage)
                .where(UserMessage.id == message_id)
                .where(UserMessage.receiver_id == reader_id)
                .where(UserMessage.read_at.is_(None))
                .values(read_at=timestamp)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount
        except Exception as e:
            logger.error(f"Error in UserMessagesDao.markMessageAsRead. Error Message: {e}")
            raise e
