"""Association store — tags, categories and their character links.

Four tables back the store: ``tags``, ``categories``, ``character_tags`` and
``character_categories``. Link tables are indexed on both columns so that
per-character lookups and cascade deletes never need a full scan.

Cascade delete and replace-all each run in one session transaction, so a
failure part-way rolls the store back to its previous state instead of
leaving orphaned links or an emptied link set.
"""
from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, col, select

from character_manager.config import get_settings
from character_manager.errors import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    StoreError,
)
from character_manager.models.category import Category, CharacterCategory
from character_manager.models.tag import CharacterTag, Tag

logger = logging.getLogger(__name__)


def _clean_name(name: object, kind: str) -> str:
    if not isinstance(name, str) or not name.strip():
        raise InvalidInputError(f"{kind} name is required")
    return name.strip()


def _clean_ids(ids: object, field: str) -> list[str]:
    """Validate an id list and drop repeated ids, keeping first occurrence."""
    if not isinstance(ids, list):
        raise InvalidInputError(f"{field} must be an array")
    unique: list[str] = []
    for item in ids:
        if not isinstance(item, str):
            raise InvalidInputError(f"{field} must contain only strings")
        if item not in unique:
            unique.append(item)
    return unique


def _check_character_id(character_id: str) -> None:
    if not character_id:
        raise InvalidInputError("Character id is required")


class AssociationStore:
    """CRUD over tags/categories plus per-character link management."""

    def __init__(self, session: Session) -> None:
        self._session = session

    @contextmanager
    def _transaction(self, action: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.exception("Store failure while trying to %s", action)
            raise StoreError(f"Failed to {action}") from exc

    def _clear_links(
        self,
        link_model: type[CharacterTag] | type[CharacterCategory],
        character_id: str,
    ) -> None:
        existing = self._session.exec(
            select(link_model).where(link_model.character_id == character_id)
        ).all()
        for link in existing:
            self._session.delete(link)
        # Flush deletes before inserts re-use the same (character, id) keys
        self._session.flush()

    # --- Tags ---

    def create_tag(self, name: str, color: str | None = None) -> Tag:
        name = _clean_name(name, "Tag")
        with self._transaction("create tag"):
            existing = self._session.exec(select(Tag).where(Tag.name == name)).first()
            if existing:
                raise ConflictError("Tag already exists")

            tag = Tag(name=name, color=color or get_settings().default_tag_color)
            self._session.add(tag)
            try:
                self._session.commit()
            except IntegrityError as exc:
                self._session.rollback()
                raise ConflictError("Tag already exists") from exc
            self._session.refresh(tag)

        logger.info("Created tag %s (%r)", tag.id, tag.name)
        return tag

    def list_tags(self) -> list[Tag]:
        with self._transaction("retrieve tags"):
            statement = select(Tag).order_by(col(Tag.created_at), col(Tag.name))
            return list(self._session.exec(statement).all())

    def delete_tag(self, tag_id: str) -> None:
        """Remove a tag and every character link pointing at it.

        Links are removed even when no tag has ``tag_id``; NotFoundError is
        raised afterwards so stray links never survive.
        """
        with self._transaction("delete tag"):
            links = self._session.exec(
                select(CharacterTag).where(CharacterTag.tag_id == tag_id)
            ).all()
            for link in links:
                self._session.delete(link)
            tag = self._session.get(Tag, tag_id)
            if tag:
                self._session.delete(tag)
            self._session.commit()

        if not tag:
            raise NotFoundError("Tag not found")
        logger.info("Deleted tag %s", tag_id)

    # --- Categories ---

    def create_category(
        self,
        name: str,
        description: str | None = None,
        color: str | None = None,
    ) -> Category:
        name = _clean_name(name, "Category")
        with self._transaction("create category"):
            existing = self._session.exec(
                select(Category).where(Category.name == name)
            ).first()
            if existing:
                raise ConflictError("Category already exists")

            category = Category(
                name=name,
                description=description or "",
                color=color or get_settings().default_category_color,
            )
            self._session.add(category)
            try:
                self._session.commit()
            except IntegrityError as exc:
                self._session.rollback()
                raise ConflictError("Category already exists") from exc
            self._session.refresh(category)

        logger.info("Created category %s (%r)", category.id, category.name)
        return category

    def list_categories(self) -> list[Category]:
        with self._transaction("retrieve categories"):
            statement = select(Category).order_by(col(Category.created_at), col(Category.name))
            return list(self._session.exec(statement).all())

    def delete_category(self, category_id: str) -> None:
        with self._transaction("delete category"):
            links = self._session.exec(
                select(CharacterCategory).where(CharacterCategory.category_id == category_id)
            ).all()
            for link in links:
                self._session.delete(link)
            category = self._session.get(Category, category_id)
            if category:
                self._session.delete(category)
            self._session.commit()

        if not category:
            raise NotFoundError("Category not found")
        logger.info("Deleted category %s", category_id)

    # --- Character links ---

    def get_tags_for_character(self, character_id: str) -> list[Tag]:
        with self._transaction("retrieve character tags"):
            results = self._session.exec(
                select(Tag)
                .join(CharacterTag, col(CharacterTag.tag_id) == col(Tag.id))
                .where(CharacterTag.character_id == character_id)
                .order_by(col(CharacterTag.created_at), col(Tag.name))
            ).all()
            return list(results)

    def set_tags_for_character(
        self, character_id: str, tag_ids: list[str]
    ) -> list[CharacterTag]:
        """Replace the character's whole tag set with ``tag_ids``.

        An empty list clears the set. Ids are not checked against existing
        tags; dangling ids are skipped on read.
        """
        _check_character_id(character_id)
        tag_ids = _clean_ids(tag_ids, "tagIds")
        with self._transaction("assign tags"):
            self._clear_links(CharacterTag, character_id)
            links = [CharacterTag(character_id=character_id, tag_id=tid) for tid in tag_ids]
            self._session.add_all(links)
            self._session.commit()
            for link in links:
                self._session.refresh(link)

        logger.info("Assigned %d tag(s) to character %r", len(links), character_id)
        return links

    def get_categories_for_character(self, character_id: str) -> list[Category]:
        with self._transaction("retrieve character categories"):
            results = self._session.exec(
                select(Category)
                .join(CharacterCategory, col(CharacterCategory.category_id) == col(Category.id))
                .where(CharacterCategory.character_id == character_id)
                .order_by(col(CharacterCategory.created_at), col(Category.name))
            ).all()
            return list(results)

    def set_categories_for_character(
        self, character_id: str, category_ids: list[str]
    ) -> list[CharacterCategory]:
        _check_character_id(character_id)
        category_ids = _clean_ids(category_ids, "categoryIds")
        with self._transaction("assign categories"):
            self._clear_links(CharacterCategory, character_id)
            links = [
                CharacterCategory(character_id=character_id, category_id=cid)
                for cid in category_ids
            ]
            self._session.add_all(links)
            self._session.commit()
            for link in links:
                self._session.refresh(link)

        logger.info(
            "Assigned %d category(ies) to character %r", len(links), character_id
        )
        return links

    def get_all_associations(self) -> dict[str, dict[str, list[str]]]:
        """Group every link by character id.

        Returns ``{character_id: {"tags": [...], "categories": [...]}}``;
        characters without any link are absent.
        """
        with self._transaction("retrieve associations"):
            tag_links = self._session.exec(
                select(CharacterTag).order_by(col(CharacterTag.created_at))
            ).all()
            category_links = self._session.exec(
                select(CharacterCategory).order_by(col(CharacterCategory.created_at))
            ).all()

        result: dict[str, dict[str, list[str]]] = {}
        for link in tag_links:
            entry = result.setdefault(link.character_id, {"tags": [], "categories": []})
            entry["tags"].append(link.tag_id)
        for link in category_links:
            entry = result.setdefault(link.character_id, {"tags": [], "categories": []})
            entry["categories"].append(link.category_id)
        return result
