"""Character router — per-character tag/category assignment and bulk reads.

Character ids are opaque strings owned by the host (avatar filenames or list
positions). The ``:path`` converter lets ids contain slashes.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from character_manager.dependencies import CallerIdentity, get_store, require_admin
from character_manager.errors import CharacterManagerError, to_http_exception
from character_manager.models.association import CharacterAssociations
from character_manager.models.category import (
    AssignCategoriesRequest,
    AssignCategoriesResponse,
    CategoryRead,
    CharacterCategoryRead,
)
from character_manager.models.tag import (
    AssignTagsRequest,
    AssignTagsResponse,
    CharacterTagRead,
    TagRead,
)
from character_manager.services.associations import AssociationStore

router = APIRouter(prefix="/characters", tags=["characters"])


@router.get("/associations", response_model=dict[str, CharacterAssociations])
async def get_all_associations(
    store: AssociationStore = Depends(get_store),
) -> dict[str, CharacterAssociations]:
    """Every character's tag and category ids, for one-shot client hydration."""
    try:
        grouped = store.get_all_associations()
    except CharacterManagerError as exc:
        raise to_http_exception(exc) from exc
    return {cid: CharacterAssociations(**links) for cid, links in grouped.items()}


# --- Tags ---


@router.get("/{character_id:path}/tags", response_model=list[TagRead])
async def get_character_tags(
    character_id: str,
    store: AssociationStore = Depends(get_store),
) -> list[TagRead]:
    try:
        tags = store.get_tags_for_character(character_id)
    except CharacterManagerError as exc:
        raise to_http_exception(exc) from exc
    return [TagRead.model_validate(t) for t in tags]


@router.post("/{character_id:path}/tags", response_model=AssignTagsResponse)
async def assign_character_tags(
    character_id: str,
    body: AssignTagsRequest,
    _admin: CallerIdentity = Depends(require_admin),
    store: AssociationStore = Depends(get_store),
) -> AssignTagsResponse:
    try:
        links = store.set_tags_for_character(character_id, body.tag_ids)
    except CharacterManagerError as exc:
        raise to_http_exception(exc) from exc
    return AssignTagsResponse(
        message="Tags assigned successfully" if links else "Character tags cleared",
        associations=[CharacterTagRead.model_validate(link) for link in links],
    )


# --- Categories ---


@router.get("/{character_id:path}/categories", response_model=list[CategoryRead])
async def get_character_categories(
    character_id: str,
    store: AssociationStore = Depends(get_store),
) -> list[CategoryRead]:
    try:
        categories = store.get_categories_for_character(character_id)
    except CharacterManagerError as exc:
        raise to_http_exception(exc) from exc
    return [CategoryRead.model_validate(c) for c in categories]


@router.post("/{character_id:path}/categories", response_model=AssignCategoriesResponse)
async def assign_character_categories(
    character_id: str,
    body: AssignCategoriesRequest,
    _admin: CallerIdentity = Depends(require_admin),
    store: AssociationStore = Depends(get_store),
) -> AssignCategoriesResponse:
    try:
        links = store.set_categories_for_character(character_id, body.category_ids)
    except CharacterManagerError as exc:
        raise to_http_exception(exc) from exc
    return AssignCategoriesResponse(
        message=(
            "Categories assigned successfully" if links else "Character categories cleared"
        ),
        associations=[CharacterCategoryRead.model_validate(link) for link in links],
    )
