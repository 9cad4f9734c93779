from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import create_engine, delete
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.exc import IntegrityError

from .config import settings
from .models import Base, Chat, User


def _engine_connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.DATABASE_URL,
    connect_args=_engine_connect_args(settings.DATABASE_URL),
)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def init_db() -> None:
    Base.metadata.create_all(bind=engine)


def get_db() -> Iterable[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ---------- Users ----------


def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def get_users_by_ids(db: Session, user_ids: Iterable[int]) -> List[User]:
    ids = set(user_ids)
    if not ids:
        return []
    return db.query(User).filter(User.id.in_(ids)).all()


def insert_user(
    db: Session,
    *,
    email: str,
    username: str,
    password_hash: str,
) -> Tuple[Optional[User], bool]:
    """
    Returns (user, duplicate_flag).
    duplicate_flag=True if the email was already registered; user is None then.
    """
    user = User(email=email, username=username, password_hash=password_hash)
    db.add(user)
    try:
        db.commit()
        db.refresh(user)
        return user, False
    except IntegrityError:
        db.rollback()
        return None, True


# ---------- Chats ----------


def insert_chat(
    db: Session,
    *,
    sender: str,
    recipient: str,
    msg: str,
    created_at: str,
    owner_id: int,
) -> Chat:
    chat = Chat(
        sender=sender,
        recipient=recipient,
        msg=msg,
        created_at=created_at,
        owner_id=owner_id,
    )
    db.add(chat)
    db.commit()
    db.refresh(chat)
    return chat


def insert_chats(db: Session, rows: Sequence[dict]) -> int:
    db.add_all([Chat(**row) for row in rows])
    db.commit()
    return len(rows)


def list_chats(db: Session) -> List[Chat]:
    # no ORDER BY: whatever order the store returns
    return db.query(Chat).all()


# SQLite (and BIGINT columns elsewhere) hold signed 64-bit ids
_MAX_ID = 2**63 - 1


def get_chat(db: Session, chat_id: int) -> Optional[Chat]:
    if not -_MAX_ID - 1 <= chat_id <= _MAX_ID:
        return None
    return db.get(Chat, chat_id)


def update_chat_msg(db: Session, chat: Chat, *, msg: str, updated_at: str) -> Chat:
    chat.msg = msg
    chat.updated_at = updated_at
    db.commit()
    db.refresh(chat)
    return chat


def delete_chat(db: Session, chat: Chat) -> None:
    db.delete(chat)
    db.commit()


def delete_all_chats(db: Session) -> None:
    db.execute(delete(Chat))
    db.commit()
