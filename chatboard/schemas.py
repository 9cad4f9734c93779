from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class OwnerPublic(BaseModel):
    """Identity fields safe to show next to a message."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str


class ChatView(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    from_: str = Field(alias="from")
    to: str
    msg: str
    created_at: str
    updated_at: Optional[str] = None
    owner_id: int
    owner: Optional[OwnerPublic] = None
