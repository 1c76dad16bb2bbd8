"""Tag model — colored labels assignable to characters."""
from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, ConfigDict
from pydantic import Field as PydanticField
from sqlmodel import Field, SQLModel


class CharacterTag(SQLModel, table=True):
    """Many-to-many junction table between characters and tags.

    character_id is an opaque host identifier (avatar filename or list
    position). tag_id is a weak reference; cascade on tag delete is done by
    the association store.
    """
    __tablename__ = "character_tags"

    character_id: str = Field(primary_key=True, index=True)
    tag_id: str = Field(primary_key=True, index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Tag(SQLModel, table=True):
    __tablename__ = "tags"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    name: str = Field(index=True, unique=True)  # Trimmed, case preserved
    color: str = Field(default="#007bff")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# --- Pydantic schemas ---

class TagCreate(BaseModel):
    name: str
    color: str | None = None


class TagRead(BaseModel):
    id: str
    name: str
    color: str
    created_at: datetime

    model_config = {"from_attributes": True}


class AssignTagsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tag_ids: list[str] = PydanticField(alias="tagIds")


class CharacterTagRead(BaseModel):
    character_id: str
    tag_id: str
    created_at: datetime

    model_config = {"from_attributes": True}


class AssignTagsResponse(BaseModel):
    message: str
    associations: list[CharacterTagRead]
