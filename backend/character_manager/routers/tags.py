"""Tag router — create, list and delete tags."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from character_manager.dependencies import CallerIdentity, get_store, require_admin
from character_manager.errors import CharacterManagerError, to_http_exception
from character_manager.models.tag import TagCreate, TagRead
from character_manager.services.associations import AssociationStore

router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("", response_model=list[TagRead])
async def list_tags(store: AssociationStore = Depends(get_store)) -> list[TagRead]:
    try:
        tags = store.list_tags()
    except CharacterManagerError as exc:
        raise to_http_exception(exc) from exc
    return [TagRead.model_validate(t) for t in tags]


@router.post("", response_model=TagRead, status_code=201)
async def create_tag(
    body: TagCreate,
    _admin: CallerIdentity = Depends(require_admin),
    store: AssociationStore = Depends(get_store),
) -> TagRead:
    try:
        tag = store.create_tag(body.name, body.color)
    except CharacterManagerError as exc:
        raise to_http_exception(exc) from exc
    return TagRead.model_validate(tag)


@router.delete("/{tag_id}")
async def delete_tag(
    tag_id: str,
    _admin: CallerIdentity = Depends(require_admin),
    store: AssociationStore = Depends(get_store),
) -> dict:
    try:
        store.delete_tag(tag_id)
    except CharacterManagerError as exc:
        raise to_http_exception(exc) from exc
    return {"message": "Tag deleted successfully"}
