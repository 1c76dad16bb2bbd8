"""Category model — described groupings assignable to characters."""
from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, ConfigDict
from pydantic import Field as PydanticField
from sqlmodel import Field, SQLModel


class CharacterCategory(SQLModel, table=True):
    """Many-to-many junction table between characters and categories."""
    __tablename__ = "character_categories"

    character_id: str = Field(primary_key=True, index=True)
    category_id: str = Field(primary_key=True, index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Category(SQLModel, table=True):
    __tablename__ = "categories"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    name: str = Field(index=True, unique=True)
    description: str = Field(default="")
    color: str = Field(default="#28a745")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# --- Pydantic schemas ---

class CategoryCreate(BaseModel):
    name: str
    description: str | None = None
    color: str | None = None


class CategoryRead(BaseModel):
    id: str
    name: str
    description: str
    color: str
    created_at: datetime

    model_config = {"from_attributes": True}


class AssignCategoriesRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    category_ids: list[str] = PydanticField(alias="categoryIds")


class CharacterCategoryRead(BaseModel):
    character_id: str
    category_id: str
    created_at: datetime

    model_config = {"from_attributes": True}


class AssignCategoriesResponse(BaseModel):
    message: str
    associations: list[CharacterCategoryRead]
