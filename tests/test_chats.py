import pytest
from sqlalchemy import event

from chatboard import chats
from chatboard import storage
from chatboard.errors import Forbidden, NotFound, Unauthenticated


@pytest.fixture()
def alice(db):
    user, _ = storage.insert_user(db, email="a@x.com", username="alice", password_hash="x")
    return user


@pytest.fixture()
def bob(db):
    user, _ = storage.insert_user(db, email="b@x.com", username="bob", password_hash="x")
    return user


@pytest.mark.parametrize("count", [0, 1, 5])
def test_list_returns_every_chat_with_owner(db, alice, bob, count):
    for i in range(count):
        owner = alice if i % 2 else bob
        chats.create_chat(db, owner, sender="e", recipient="a", msg=f"hi {i}")

    listed = chats.list_chats(db)

    assert len(listed) == count
    for view in listed:
        assert view.owner is not None
        assert view.owner.id == view.owner_id
        assert view.owner.username in {"alice", "bob"}


def test_anonymous_create_is_refused(db):
    with pytest.raises(Unauthenticated):
        chats.create_chat(db, None, sender="e", recipient="a", msg="hi")
    assert chats.list_chats(db) == []


def test_create_stamps_owner_and_time(db, alice):
    chat = chats.create_chat(db, alice, sender="ethan", recipient="ava", msg="hi")

    assert chat.owner_id == alice.id
    assert chat.created_at
    assert chat.updated_at is None
    assert chat.sender == "ethan"
    assert chat.recipient == "ava"


def test_owner_can_edit(db, alice):
    chat = chats.create_chat(db, alice, sender="e", recipient="a", msg="hi")

    edited = chats.edit_chat(db, chat.id, alice, msg="hello")

    assert edited.msg == "hello"
    assert edited.updated_at is not None


def test_other_user_cannot_edit_or_delete(db, alice, bob):
    chat = chats.create_chat(db, alice, sender="e", recipient="a", msg="hi")

    with pytest.raises(Forbidden):
        chats.edit_chat(db, chat.id, bob, msg="hacked")
    with pytest.raises(Forbidden):
        chats.delete_chat(db, chat.id, bob)

    db.expire_all()
    stored = storage.get_chat(db, chat.id)
    assert stored.msg == "hi"
    assert stored.updated_at is None


def test_anonymous_edit_is_unauthenticated_not_a_crash(db, alice):
    chat = chats.create_chat(db, alice, sender="e", recipient="a", msg="hi")

    with pytest.raises(Unauthenticated):
        chats.edit_chat(db, chat.id, None, msg="x")
    with pytest.raises(Unauthenticated):
        chats.delete_chat(db, chat.id, None)


def test_missing_chat_is_not_found(db, alice):
    with pytest.raises(NotFound):
        chats.delete_chat(db, 999, alice)


def test_owner_delete_removes_chat(db, alice):
    chat = chats.create_chat(db, alice, sender="e", recipient="a", msg="hi")

    chats.delete_chat(db, chat.id, alice)

    assert storage.get_chat(db, chat.id) is None
    assert chats.list_chats(db) == []


def test_refusal_message_names_the_operation(db, alice, bob):
    chat = chats.create_chat(db, alice, sender="e", recipient="a", msg="hi")

    with pytest.raises(Forbidden) as edit_refused:
        chats.edit_chat(db, chat.id, bob, msg="x")
    with pytest.raises(Forbidden) as delete_refused:
        chats.delete_chat(db, chat.id, bob)

    assert edit_refused.value.message == "You do not have permission to edit this message!"
    assert delete_refused.value.message == "You do not have permission to delete this message!"


def test_out_of_range_id_is_missing(db, alice):
    assert storage.get_chat(db, 2**64) is None
    with pytest.raises(NotFound):
        chats.edit_chat(db, 2**64, alice, msg="x")


@pytest.mark.parametrize("count", [1, 6])
def test_list_costs_two_queries_regardless_of_size(db, alice, bob, count):
    for i in range(count):
        chats.create_chat(db, alice if i % 2 else bob, sender="e", recipient="a", msg="hi")
    db.expire_all()

    statements = []

    def record(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    engine = db.get_bind()
    event.listen(engine, "before_cursor_execute", record)
    try:
        listed = chats.list_chats(db)
    finally:
        event.remove(engine, "before_cursor_execute", record)

    assert len(listed) == count
    assert all(view.owner is not None for view in listed)
    assert len(statements) == 2
