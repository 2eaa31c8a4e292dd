import uuid

import pytest
from sqlalchemy import func, select

from handygo.api.exceptions import NotFoundError, ValidationError
from handygo.database.core import message_funcs
from handygo.database.core.message_funcs import canonical_pair
from handygo.database.entities.conversations import Conversation
from handygo.database.entities.messages import UserMessage


@pytest.fixture
def alice(make_user):
    return make_user("alice", name="Alice", avatar_url="https://img/alice.png")


@pytest.fixture
def bob(make_user):
    return make_user("bob", name="Bob")


@pytest.fixture
def task(make_task, alice):
    return make_task(alice, name="Assemble a bookshelf", price="40.50")


def _send(task_id, sender, receiver, content):
    return message_funcs.send_message(task_id=task_id, sender_id=sender, receiver_id=receiver, content=content)


def _conversations(db):
    with db() as session:
        return session.execute(select(Conversation)).scalars().all()


def test_canonical_pair_orders_by_string_form():
    low = uuid.UUID("00000000-0000-4000-8000-000000000001")
    high = uuid.UUID("ffffffff-0000-4000-8000-000000000001")

    assert canonical_pair(low, high) == (low, high)
    assert canonical_pair(high, low) == (low, high)


def test_send_message_returns_stored_message(task, alice, bob):
    message = _send(task, alice, bob, "Hi Bob, still available?")

    assert message["task_id"] == str(task)
    assert message["sender_id"] == str(alice)
    assert message["receiver_id"] == str(bob)
    assert message["content"] == "Hi Bob, still available?"
    assert message["read_at"] is None
    assert message["created_at"]


def test_both_directions_share_one_conversation(db, task, alice, bob):
    _send(task, alice, bob, "Hello")
    reply = _send(task, bob, alice, "Hi!")

    conversations = _conversations(db)
    assert len(conversations) == 1
    conversation = conversations[0]
    assert (conversation.user1_id, conversation.user2_id) == canonical_pair(alice, bob)
    assert str(conversation.last_message_id) == reply["id"]


def test_each_task_gets_its_own_conversation(db, make_task, task, alice, bob):
    other_task = make_task(bob, name="Walk the dog")

    _send(task, alice, bob, "About the shelf")
    _send(other_task, alice, bob, "About the dog")

    assert len(_conversations(db)) == 2


def test_thread_is_ordered_and_carries_participants(task, alice, bob):
    _send(task, alice, bob, "first")
    _send(task, bob, alice, "second")
    _send(task, alice, bob, "third")

    messages = message_funcs.get_conversation_messages(task_id=str(task), user_id=str(bob), other_user_id=str(alice))

    assert [m["content"] for m in messages] == ["first", "second", "third"]
    assert messages[0]["sender_username"] == "alice"
    assert messages[0]["sender_avatar_url"] == "https://img/alice.png"
    assert messages[0]["receiver_name"] == "Bob"
    assert messages[1]["sender_username"] == "bob"


def test_thread_excludes_other_pairs(make_user, task, alice, bob):
    carol = make_user("carol")
    _send(task, alice, bob, "for bob")
    _send(task, carol, alice, "from carol")

    messages = message_funcs.get_conversation_messages(task_id=task, user_id=alice, other_user_id=bob)

    assert [m["content"] for m in messages] == ["for bob"]


def test_empty_thread(task, alice, bob):
    assert message_funcs.get_conversation_messages(task_id=task, user_id=alice, other_user_id=bob) == []


def test_mark_conversation_as_read_only_touches_incoming(db, task, alice, bob):
    _send(task, alice, bob, "one")
    _send(task, alice, bob, "two")
    _send(task, bob, alice, "reply")

    assert message_funcs.mark_conversation_as_read(task_id=task, reader_id=bob, other_user_id=alice) == 2

    with db() as session:
        rows = session.execute(select(UserMessage)).scalars().all()
        read = {m.content: m.read_at for m in rows}
    assert read["one"] is not None
    assert read["two"] is not None
    assert read["reply"] is None


def test_mark_conversation_as_read_is_idempotent(db, task, alice, bob):
    _send(task, alice, bob, "one")
    message_funcs.mark_conversation_as_read(task_id=task, reader_id=bob, other_user_id=alice)
    with db() as session:
        first_read_at = session.execute(select(UserMessage.read_at)).scalar_one()

    assert message_funcs.mark_conversation_as_read(task_id=task, reader_id=bob, other_user_id=alice) == 0

    with db() as session:
        assert session.execute(select(UserMessage.read_at)).scalar_one() == first_read_at


def test_mark_single_message_as_read(task, alice, bob):
    message = _send(task, alice, bob, "one")

    # only the receiver can mark it
    assert message_funcs.mark_message_as_read(message_id=message["id"], reader_id=alice) is False
    assert message_funcs.mark_message_as_read(message_id=message["id"], reader_id=bob) is True
    assert message_funcs.mark_message_as_read(message_id=message["id"], reader_id=bob) is False


def test_user_conversations_summaries(make_task, task, alice, bob):
    other_task = make_task(bob, name="Walk the dog", price="10")
    _send(task, alice, bob, "shelf?")
    _send(other_task, bob, alice, "dog?")

    summaries = message_funcs.get_user_conversations(user_id=alice)

    assert [s["task_name"] for s in summaries] == ["Walk the dog", "Assemble a bookshelf"]
    latest = summaries[0]
    assert latest["other_user_id"] == str(bob)
    assert latest["other_username"] == "bob"
    assert latest["other_name"] == "Bob"
    assert latest["last_message_content"] == "dog?"
    assert latest["task_price"] == 10.0
    assert summaries[1]["task_price"] == 40.5


def test_summaries_from_the_other_side(task, alice, bob):
    _send(task, alice, bob, "hello")

    [summary] = message_funcs.get_user_conversations(user_id=bob)

    assert summary["other_user_id"] == str(alice)
    assert summary["other_username"] == "alice"


def test_no_conversations(alice):
    assert message_funcs.get_user_conversations(user_id=alice) == []


def test_get_or_create_conversation_writes_nothing(db, task, alice, bob):
    result = message_funcs.get_or_create_conversation(task_id=str(task), user_id=alice, other_user_id=str(bob))

    assert result == {"messages": [], "taskId": str(task), "otherUserId": str(bob)}
    with db() as session:
        assert session.execute(select(func.count()).select_from(Conversation)).scalar_one() == 0


@pytest.mark.parametrize("field", ["task_id", "receiver_id", "content"])
def test_send_message_requires_fields(task, alice, bob, field):
    kwargs = {"task_id": task, "sender_id": alice, "receiver_id": bob, "content": "hi"}
    kwargs[field] = None

    with pytest.raises(ValidationError) as exc:
        message_funcs.send_message(**kwargs)
    assert exc.value.message == "Missing required fields: task_id, receiver_id, content"


def test_send_message_rejects_malformed_ids(alice, bob):
    with pytest.raises(ValidationError):
        _send("not-a-uuid", alice, bob, "hi")


def test_send_message_to_unknown_receiver(db, task, alice):
    with pytest.raises(NotFoundError) as exc:
        _send(task, alice, uuid.uuid4(), "hello?")
    assert exc.value.message == "Receiver not found"

    assert _conversations(db) == []


def test_send_message_on_unknown_task(db, alice, bob):
    with pytest.raises(NotFoundError) as exc:
        _send(uuid.uuid4(), alice, bob, "hello?")
    assert exc.value.message == "Task not found"

    assert _conversations(db) == []


def test_timestamps_read_back_in_utc(task, alice, bob):
    sent = _send(task, alice, bob, "hi")

    [stored] = message_funcs.get_conversation_messages(task_id=str(task), user_id=str(alice), other_user_id=str(bob))
    [summary] = message_funcs.get_user_conversations(user_id=bob)

    assert stored["created_at"] == sent["created_at"]
    assert sent["created_at"].endswith("+00:00")
    assert summary["last_message_at"].endswith("+00:00")
