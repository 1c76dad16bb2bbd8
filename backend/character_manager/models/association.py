from __future__ import annotations

from pydantic import BaseModel


class CharacterAssociations(BaseModel):
    """Tag and category ids linked to one character."""
    tags: list[str] = []
    categories: list[str] = []
