from typing import List, Optional

from sqlalchemy.orm import Session

from . import storage
from .errors import Forbidden, NotFound, Unauthenticated
from .logging_utils import iso_now
from .models import Chat, User
from .schemas import ChatView, OwnerPublic


def list_chats(db: Session) -> List[ChatView]:
    """
    All chats with their owner's public fields attached.

    Owners are loaded with a single batched query and merged in memory,
    so the page costs two queries regardless of the number of chats.
    """
    rows = storage.list_chats(db)
    owners = {
        u.id: OwnerPublic.model_validate(u)
        for u in storage.get_users_by_ids(db, (c.owner_id for c in rows))
    }
    return [
        ChatView(
            id=c.id,
            from_=c.sender,
            to=c.recipient,
            msg=c.msg,
            created_at=c.created_at,
            updated_at=c.updated_at,
            owner_id=c.owner_id,
            owner=owners.get(c.owner_id),
        )
        for c in rows
    ]


def create_chat(
    db: Session,
    current_user: Optional[User],
    *,
    sender: str,
    recipient: str,
    msg: str,
) -> Chat:
    if current_user is None:
        raise Unauthenticated("Please login to send messages!")
    return storage.insert_chat(
        db,
        sender=sender,
        recipient=recipient,
        msg=msg,
        created_at=iso_now(),
        owner_id=current_user.id,
    )


def get_owned_chat(
    db: Session,
    chat_id: int,
    current_user: Optional[User],
    action: str = "edit",
) -> Chat:
    """
    Fetch a chat the current user is allowed to modify.

    Checked in order: logged in, chat exists, chat owned by the caller.
    """
    if current_user is None:
        raise Unauthenticated()

    chat = storage.get_chat(db, chat_id)
    if chat is None:
        raise NotFound()

    if chat.owner_id != current_user.id:
        raise Forbidden(f"You do not have permission to {action} this message!")

    return chat


def edit_chat(db: Session, chat_id: int, current_user: Optional[User], *, msg: str) -> Chat:
    chat = get_owned_chat(db, chat_id, current_user)
    return storage.update_chat_msg(db, chat, msg=msg, updated_at=iso_now())


def delete_chat(db: Session, chat_id: int, current_user: Optional[User]) -> None:
    chat = get_owned_chat(db, chat_id, current_user, action="delete")
    storage.delete_chat(db, chat)
