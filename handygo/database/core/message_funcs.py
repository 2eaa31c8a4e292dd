"""
Service-layer operations for task-scoped direct messages.

Threading model
---------------
A thread is identified by a task and an *unordered* pair of users. The pair is
stored in canonical order: the two ids are compared as their canonical string
form (lower-case, hyphenated UUID) and the lexicographically smaller one
becomes `user1_id`. Whoever sends, the same `conversation` row is reused.

Messages are append-only; each new message upserts the thread row so that
`last_message_at`/`last_message_id` describe it. The latest write wins; no
check protects against a message with an older timestamp arriving late.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from handygo.api.exceptions import NotFoundError, ValidationError
from handygo.database.core.funcs import parse_uuid
from handygo.database.daos.conversation_dao import ConversationDao
from handygo.database.daos.task_dao import TaskDao
from handygo.database.daos.user_dao import UserDao
from handygo.database.daos.user_message_dao import UserMessagesDao
from handygo.database.entities.messages import UserMessage, isoformat_utc
from handygo.database.helpers.transactionManagement import transactional

logger = logging.getLogger(__name__)


def canonical_pair(user_a: uuid.UUID, user_b: uuid.UUID) -> Tuple[uuid.UUID, uuid.UUID]:
    """Order two user ids by the lexicographic order of `str(uuid)`."""
    if str(user_a) <= str(user_b):
        return user_a, user_b
    return user_b, user_a


@transactional
def send_message(session: Session, task_id, sender_id, receiver_id, content: Optional[str]) -> dict:
    """
    Append a message to a task thread and upsert the thread row.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session (injected by @transactional).
    task_id : UUID | str
        Task the message is about.
    sender_id : UUID | str
        Authenticated author.
    receiver_id : UUID | str
        Addressee.
    content : str
        Message body.

    Returns
    -------
    dict
        {'id', 'task_id', 'sender_id', 'receiver_id', 'content', 'created_at', 'read_at'}

    Raises
    ------
    ValidationError
        If task, receiver or content is empty, or an id is malformed.
    NotFoundError
        If the task or the receiver does not exist.
    """
    if not task_id or not receiver_id or not content or not str(content).strip():
        raise ValidationError("Missing required fields: task_id, receiver_id, content")

    task_id = parse_uuid(task_id, "task_id")
    sender_id = parse_uuid(sender_id, "sender id")
    receiver_id = parse_uuid(receiver_id, "receiver_id")

    if TaskDao().fetchTaskById(session, task_id) is None:
        raise NotFoundError("Task not found")
    if UserDao().fetchUserById(session, receiver_id) is None:
        raise NotFoundError("Receiver not found")

    message_dao = UserMessagesDao()
    conversation_dao = ConversationDao()
    timestamp = datetime.now(timezone.utc)

    message = message_dao.createMessage(
        session,
        UserMessage(
            message_id=uuid.uuid4(),
            task_id=task_id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            created_at=timestamp,
        ),
    )

    user1_id, user2_id = canonical_pair(sender_id, receiver_id)
    conversation_dao.upsertConversation(
        session,
        task_id=task_id,
        user1_id=user1_id,
        user2_id=user2_id,
        message_id=message.id,
        timestamp=timestamp,
    )
    logger.debug("Message %s stored on task %s", message.id, task_id)
    return message.to_dict()


@transactional
def get_conversation_messages(session: Session, task_id, user_id, other_user_id) -> list[dict]:
    """
    List every message of a task exchanged between two users, oldest first.

    Returns
    -------
    list[dict]
        Message fields plus `sender_username`, `sender_name`,
        `sender_avatar_url`, `receiver_username`, `receiver_name`,
        `receiver_avatar_url`. Empty when the users never wrote to each other.
    """
    task_id = parse_uuid(task_id, "taskId")
    user_id = parse_uuid(user_id, "user id")
    other_user_id = parse_uuid(other_user_id, "otherUserId")

    rows = UserMessagesDao().fetchMessagesBetweenUsers(session, task_id, user_id, other_user_id)
    messages = []
    for row in rows:
        message = row[0].to_dict()
        message.update(
            {
                "sender_username": row.sender_username,
                "sender_name": row.sender_name,
                "sender_avatar_url": row.sender_avatar_url,
                "receiver_username": row.receiver_username,
                "receiver_name": row.receiver_name,
                "receiver_avatar_url": row.receiver_avatar_url,
            }
        )
        messages.append(message)
    return messages


@transactional
def mark_conversation_as_read(session: Session, task_id, reader_id, other_user_id) -> int:
    """
    Mark as read every unread message `other_user_id` sent to `reader_id` on a task.

    Returns
    -------
    int
        Number of messages that were unread. Repeating the call returns 0 and
        leaves existing `read_at` values untouched.
    """
    return UserMessagesDao().markConversationAsRead(
        session,
        task_id=parse_uuid(task_id, "taskId"),
        reader_id=parse_uuid(reader_id, "user id"),
        other_id=parse_uuid(other_user_id, "otherUserId"),
        timestamp=datetime.now(timezone.utc),
    )


@transactional
def mark_message_as_read(session: Session, message_id, reader_id) -> bool:
    """Mark one message as read if `reader_id` is its receiver. True if it changed."""
    updated = UserMessagesDao().markMessageAsRead(
        session,
        message_id=parse_uuid(message_id, "message id"),
        reader_id=parse_uuid(reader_id, "user id"),
        timestamp=datetime.now(timezone.utc),
    )
    return updated > 0


@transactional
def get_user_conversations(session: Session, user_id) -> list[dict]:
    """
    Summaries of every conversation a user takes part in, most recent first.

    Returns
    -------
    list[dict]
        Each item: conversation_id, task_id, last_message_at, last_message_id,
        other_user_id, task_name, task_price, task_time, other_username,
        other_name, other_avatar_url, last_message_content,
        last_message_created_at. Empty list when the user has no conversations.
    """
    rows = ConversationDao().fetchConversationSummariesByUserId(session, parse_uuid(user_id, "user id"))
    return [
        {
            "conversation_id": str(row.conversation_id),
            "task_id": str(row.task_id),
            "last_message_at": isoformat_utc(row.last_message_at),
            "last_message_id": str(row.last_message_id),
            "other_user_id": str(row.other_user_id),
            "task_name": row.task_name,
            "task_price": float(row.task_price) if row.task_price is not None else None,
            "task_time": isoformat_utc(row.task_time),
            "other_username": row.other_username,
            "other_name": row.other_name,
            "other_avatar_url": row.other_avatar_url,
            "last_message_content": row.last_message_content,
            "last_message_created_at": isoformat_utc(row.last_message_created_at),
        }
        for row in rows
    ]


@transactional
def get_or_create_conversation(session: Session, task_id, user_id, other_user_id) -> dict:
    """
    Open a thread for display: existing messages, or an empty list when the
    pair has not written yet. Nothing is written; the thread row appears with
    the first message.

    Returns
    -------
    dict
        {'messages': [...], 'taskId': <str>, 'otherUserId': <str>}
    """
    messages = get_conversation_messages(task_id=task_id, user_id=user_id, other_user_id=other_user_id)
    return {"messages": messages, "taskId": str(task_id), "otherUserId": str(other_user_id)}
