"""Server plugin entry points.

The host process calls :func:`init` with its FastAPI app; the character
manager API is mounted as a sub-application under the configured prefix, so
its exception handlers and app state stay separate from the host's.
"""
from __future__ import annotations

import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from character_manager.config import get_settings
from character_manager.db import create_db_and_tables, engine
from character_manager.dependencies import AdminPredicate
from character_manager.routers import categories, characters, health, tags

logger = logging.getLogger(__name__)

PLUGIN_INFO = {
    "id": "sillytavern-character-manager",
    "name": "SillyTavern Character Manager",
    "description": "A plugin for managing character tags and categories with admin control",
}


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed bodies as 400 with a readable message."""
    problems = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        field = ".".join(loc)
        problems.append(f"{field}: {error.get('msg')}" if field else str(error.get("msg")))
    return JSONResponse(
        status_code=400,
        content={"detail": "; ".join(problems) or "Invalid request body"},
    )


def create_api() -> FastAPI:
    api = FastAPI(
        title=PLUGIN_INFO["name"],
        description=PLUGIN_INFO["description"],
        version=health.VERSION,
    )
    api.add_exception_handler(RequestValidationError, _validation_error_handler)
    api.include_router(health.router)
    api.include_router(tags.router)
    api.include_router(categories.router)
    api.include_router(characters.router)
    return api


api = create_api()


def prepare_storage() -> None:
    """Create the data directory and the four tables if missing."""
    settings = get_settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    database = engine.url.database
    if engine.dialect.name == "sqlite" and database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)
    create_db_and_tables()


def init(
    host: FastAPI,
    prefix: str | None = None,
    is_admin: AdminPredicate | None = None,
) -> FastAPI:
    """Prepare storage and mount the API on ``host``.

    ``is_admin`` replaces the default admin-handle comparison; without it the
    default is restored. Returns the mounted sub-application.
    """
    logger.info("Initializing %s plugin...", PLUGIN_INFO["name"])
    prepare_storage()
    api.state.is_admin = is_admin

    mount_path = get_settings().api_prefix if prefix is None else prefix
    already_mounted = any(
        getattr(route, "app", None) is api for route in host.router.routes
    )
    if not already_mounted:
        host.mount(mount_path, api)
    logger.info("%s plugin initialized at %s", PLUGIN_INFO["name"], mount_path or "/")
    return api


def exit() -> None:  # noqa: A001
    logger.info("%s plugin shutting down...", PLUGIN_INFO["name"])
    engine.dispose()
