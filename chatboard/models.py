from sqlalchemy.orm import declarative_base
from sqlalchemy import Column, ForeignKey, Integer, String, Text

Base = declarative_base()


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    username = Column(String(100), nullable=False)   # display name, not unique
    password_hash = Column(String(128), nullable=False)


class Chat(Base):
    __tablename__ = "chats"

    id = Column(Integer, primary_key=True)
    sender = Column(String, nullable=False)
    recipient = Column(String, nullable=False)
    msg = Column(Text, nullable=False)
    created_at = Column(String, nullable=False)   # ISO-8601 UTC string
    updated_at = Column(String, nullable=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
