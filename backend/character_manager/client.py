"""Client sync layer — mirrors server state into an explicit ClientState.

Every mutation is followed by a re-fetch of the affected collections rather
than a local patch, so the cached state never drifts from the server. Change
listeners (the host's re-render pass) are called after each refresh.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

import httpx

from character_manager.config import HANDLE_HEADER

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "/api/plugins/sillytavern-character-manager"


class ApiError(Exception):
    """A request to the character manager API failed."""

    def __init__(self, status_code: int | None, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ApiClient:
    """Thin async JSON client for the character manager endpoints."""

    def __init__(
        self,
        base_url: str,
        prefix: str = DEFAULT_PREFIX,
        handle: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ) -> None:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if handle:
            headers[HANDLE_HEADER] = handle
        self._prefix = prefix.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def request(self, method: str, endpoint: str, json: Any = None) -> Any:
        """Send one request and return the decoded JSON body.

        Raises ApiError for transport failures and non-2xx responses, using
        the server's error message when the body carries one.
        """
        url = f"{self._prefix}{endpoint}"
        try:
            resp = await self._client.request(method, url, json=json)
        except httpx.HTTPError as exc:
            logger.error("API request %s %s failed: %s", method, url, exc)
            raise ApiError(None, f"API request failed: {exc}") from exc

        if resp.is_error:
            message = _error_message(resp)
            logger.error(
                "API request %s %s failed with %d: %s",
                method, url, resp.status_code, message,
            )
            raise ApiError(resp.status_code, message)
        return resp.json()

    # --- Tags ---

    async def list_tags(self) -> list[dict]:
        return await self.request("GET", "/tags")

    async def create_tag(self, name: str, color: str | None = None) -> dict:
        body: dict[str, Any] = {"name": name}
        if color:
            body["color"] = color
        return await self.request("POST", "/tags", json=body)

    async def delete_tag(self, tag_id: str) -> dict:
        return await self.request("DELETE", f"/tags/{_quote(tag_id)}")

    # --- Categories ---

    async def list_categories(self) -> list[dict]:
        return await self.request("GET", "/categories")

    async def create_category(
        self,
        name: str,
        description: str | None = None,
        color: str | None = None,
    ) -> dict:
        body: dict[str, Any] = {"name": name}
        if description:
            body["description"] = description
        if color:
            body["color"] = color
        return await self.request("POST", "/categories", json=body)

    async def delete_category(self, category_id: str) -> dict:
        return await self.request("DELETE", f"/categories/{_quote(category_id)}")

    # --- Character associations ---

    async def get_associations(self) -> dict[str, dict[str, list[str]]]:
        return await self.request("GET", "/characters/associations")

    async def get_character_tags(self, character_id: str) -> list[dict]:
        return await self.request("GET", f"/characters/{_quote(character_id)}/tags")

    async def get_character_categories(self, character_id: str) -> list[dict]:
        return await self.request(
            "GET", f"/characters/{_quote(character_id)}/categories"
        )

    async def assign_tags(self, character_id: str, tag_ids: Sequence[str]) -> dict:
        return await self.request(
            "POST",
            f"/characters/{_quote(character_id)}/tags",
            json={"tagIds": list(tag_ids)},
        )

    async def assign_categories(
        self, character_id: str, category_ids: Sequence[str]
    ) -> dict:
        return await self.request(
            "POST",
            f"/characters/{_quote(character_id)}/categories",
            json={"categoryIds": list(category_ids)},
        )


def _quote(segment: str) -> str:
    # Slashes stay literal; the server routes character ids with a path converter
    return quote(segment, safe="/")


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or "API request failed"
    if isinstance(body, dict):
        detail = body.get("detail") or body.get("error")
        if isinstance(detail, str):
            return detail
        if detail is not None:
            return str(detail)
    return "API request failed"


@dataclass
class ClientState:
    """Local mirror of server-side tags, categories and associations."""

    tags: list[dict] = field(default_factory=list)
    categories: list[dict] = field(default_factory=list)
    associations: dict[str, dict[str, list[str]]] = field(default_factory=dict)

    def tag_by_id(self, tag_id: str) -> dict | None:
        return next((t for t in self.tags if t["id"] == tag_id), None)

    def category_by_id(self, category_id: str) -> dict | None:
        return next((c for c in self.categories if c["id"] == category_id), None)

    def associations_for(self, character_id: str) -> dict[str, list[str]]:
        links = self.associations.get(character_id) or {}
        return {
            "tags": list(links.get("tags", [])),
            "categories": list(links.get("categories", [])),
        }


ChangeListener = Callable[[ClientState], None]


class CharacterManagerSync:
    """Keeps a ClientState in step with the server.

    Failed requests propagate as ApiError after being logged; the state is
    left as it was before the failed action.
    """

    def __init__(self, api: ApiClient, state: ClientState | None = None) -> None:
        self.api = api
        self.state = state or ClientState()
        self._listeners: list[ChangeListener] = []

    def on_change(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in self._listeners:
            listener(self.state)

    async def load_tags(self) -> None:
        self.state.tags = await self.api.list_tags()
        self._notify()

    async def load_categories(self) -> None:
        self.state.categories = await self.api.list_categories()
        self._notify()

    async def load_associations(self) -> None:
        self.state.associations = await self.api.get_associations()
        self._notify()

    async def load_all(self) -> ClientState:
        await self.load_tags()
        await self.load_categories()
        await self.load_associations()
        return self.state

    async def create_tag(self, name: str, color: str | None = None) -> dict:
        tag = await self.api.create_tag(name, color)
        await self.load_tags()
        return tag

    async def create_category(
        self,
        name: str,
        description: str | None = None,
        color: str | None = None,
    ) -> dict:
        category = await self.api.create_category(name, description, color)
        await self.load_categories()
        return category

    async def delete_tag(self, tag_id: str) -> None:
        await self.api.delete_tag(tag_id)
        await self.load_tags()
        await self.load_associations()

    async def delete_category(self, category_id: str) -> None:
        await self.api.delete_category(category_id)
        await self.load_categories()
        await self.load_associations()

    async def assign_tags(self, character_id: str, tag_ids: Sequence[str]) -> None:
        await self.api.assign_tags(character_id, tag_ids)
        await self.load_associations()

    async def assign_categories(
        self, character_id: str, category_ids: Sequence[str]
    ) -> None:
        await self.api.assign_categories(character_id, category_ids)
        await self.load_associations()


# --- Character list helpers ---


def character_id_for(record: Mapping[str, Any], index: int) -> str:
    """Return the id used to key associations for a host character record.

    The avatar filename is preferred. Without one the list position is used,
    which shifts whenever the host reorders its list and silently re-points
    existing associations at another character.
    """
    avatar = record.get("avatar")
    if avatar:
        return str(avatar)
    logger.warning(
        "Character %r has no avatar; falling back to unstable positional id %d",
        record.get("name"), index,
    )
    return str(index)


def filter_characters(
    characters: Iterable[Mapping[str, Any]],
    state: ClientState,
    tag_id: str | None = None,
    category_id: str | None = None,
) -> list[tuple[int, Mapping[str, Any]]]:
    """Select characters carrying ``tag_id`` and ``category_id``.

    An unset filter places no constraint. Returns ``(index, record)`` pairs
    in list order.
    """
    selected = []
    for index, record in enumerate(characters):
        links = state.associations_for(character_id_for(record, index))
        if tag_id and tag_id not in links["tags"]:
            continue
        if category_id and category_id not in links["categories"]:
            continue
        selected.append((index, record))
    return selected


def character_labels(
    character_id: str, state: ClientState
) -> dict[str, list[tuple[str, str]]]:
    """Resolve a character's links to ``(name, color)`` pairs for display.

    Ids whose tag or category no longer exists are skipped.
    """
    links = state.associations_for(character_id)
    tags = [state.tag_by_id(tid) for tid in links["tags"]]
    categories = [state.category_by_id(cid) for cid in links["categories"]]
    return {
        "tags": [(t["name"], t["color"]) for t in tags if t],
        "categories": [(c["name"], c["color"]) for c in categories if c],
    }
