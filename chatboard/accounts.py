from typing import Tuple

from sqlalchemy.orm import Session

from .errors import Conflict, InvalidCredentials
from .models import User
from .security import check_password, create_token, hash_password, require_secret_key
from .storage import get_user_by_email, insert_user


def register(db: Session, *, email: str, username: str, password: str) -> Tuple[User, str]:
    """
    Create an identity and log it in.

    Returns (user, session_token). Raises Conflict when the email is taken.
    """
    # fail before writing anything if a session cannot be issued
    require_secret_key()

    if get_user_by_email(db, email):
        raise Conflict()

    user, duplicate = insert_user(
        db,
        email=email,
        username=username,
        password_hash=hash_password(password),
    )
    if duplicate:
        # lost a race with a concurrent signup for the same email
        raise Conflict()

    return user, create_token(user.id)


def authenticate(db: Session, *, email: str, password: str) -> Tuple[User, str]:
    user = get_user_by_email(db, email)
    if not user or not check_password(password, user.password_hash):
        raise InvalidCredentials()
    return user, create_token(user.id)
