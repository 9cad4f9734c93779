"""
Reset the chats table to a handful of sample messages.

Usage: python -m chatboard.seed owner@example.com
"""
import sys

from sqlalchemy.orm import Session

from .logging_utils import iso_now, logger
from .storage import SessionLocal, delete_all_chats, get_user_by_email, init_db, insert_chats


SAMPLE_CHATS = [
    ("ethan", "ava", "did you finish the project?"),
    ("ryan", "sophia", "call me when you're free."),
    ("daniel", "hannah", "movie night tomorrow?"),
    ("noah", "charlotte", "miss you!"),
]


def seed_chats(db: Session, owner_id: int) -> int:
    delete_all_chats(db)
    created_at = iso_now()
    rows = [
        {
            "sender": sender,
            "recipient": recipient,
            "msg": msg,
            "created_at": created_at,
            "owner_id": owner_id,
        }
        for sender, recipient, msg in SAMPLE_CHATS
    ]
    return insert_chats(db, rows)


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 1:
        print(__doc__.strip().splitlines()[-1], file=sys.stderr)
        return 2

    init_db()
    db = SessionLocal()
    try:
        owner = get_user_by_email(db, argv[0])
        if owner is None:
            print(f"no user with email {argv[0]!r}; sign up first", file=sys.stderr)
            return 1
        count = seed_chats(db, owner.id)
    finally:
        db.close()

    logger.info("seeded %d chats for user %d", count, owner.id)
    return 0


if __name__ == "__main__":
    sys.exit(main())
