import logging
from typing import Optional

import jwt
from fastapi import Cookie, Depends
from sqlalchemy.orm import Session

from .models import User
from .security import decode_token
from .storage import get_db, get_user_by_id


logger = logging.getLogger("chatboard")

SESSION_COOKIE = "token"


def resolve_session(
    token: Optional[str] = Cookie(default=None),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """
    Resolve the identity carried by the ``token`` cookie.

    Any verification failure degrades to an anonymous request (``None``);
    this dependency never raises for a bad or stale token.
    """
    if not token:
        return None

    try:
        user_id = decode_token(token)
    except jwt.InvalidTokenError as e:
        logger.debug("ignoring session token: %s", e)
        return None

    return get_user_by_id(db, user_id)
