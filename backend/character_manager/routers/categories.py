"""Category router — create, list and delete categories."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from character_manager.dependencies import CallerIdentity, get_store, require_admin
from character_manager.errors import CharacterManagerError, to_http_exception
from character_manager.models.category import CategoryCreate, CategoryRead
from character_manager.services.associations import AssociationStore

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=list[CategoryRead])
async def list_categories(
    store: AssociationStore = Depends(get_store),
) -> list[CategoryRead]:
    try:
        categories = store.list_categories()
    except CharacterManagerError as exc:
        raise to_http_exception(exc) from exc
    return [CategoryRead.model_validate(c) for c in categories]


@router.post("", response_model=CategoryRead, status_code=201)
async def create_category(
    body: CategoryCreate,
    _admin: CallerIdentity = Depends(require_admin),
    store: AssociationStore = Depends(get_store),
) -> CategoryRead:
    try:
        category = store.create_category(body.name, body.description, body.color)
    except CharacterManagerError as exc:
        raise to_http_exception(exc) from exc
    return CategoryRead.model_validate(category)


@router.delete("/{category_id}")
async def delete_category(
    category_id: str,
    _admin: CallerIdentity = Depends(require_admin),
    store: AssociationStore = Depends(get_store),
) -> dict:
    try:
        store.delete_category(category_id)
    except CharacterManagerError as exc:
        raise to_http_exception(exc) from exc
    return {"message": "Category deleted successfully"}
