from __future__ import annotations

from character_manager.models.tag import Tag, CharacterTag  # noqa: F401
from character_manager.models.category import Category, CharacterCategory  # noqa: F401
