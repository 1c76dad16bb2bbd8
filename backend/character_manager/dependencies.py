"""FastAPI dependency injection for the association store and the admin gate."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import Depends, Request
from sqlmodel import Session

from character_manager.config import HANDLE_HEADER, get_settings
from character_manager.db import get_session
from character_manager.errors import ForbiddenError, to_http_exception
from character_manager.services.associations import AssociationStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CallerIdentity:
    handle: str


AdminPredicate = Callable[[CallerIdentity], bool]


def default_is_admin(identity: CallerIdentity) -> bool:
    """Baseline policy: only the configured admin handle may mutate."""
    return identity.handle == get_settings().admin_handle


def get_caller_identity(request: Request) -> CallerIdentity:
    """Resolve who is calling.

    A host integration may put its user object on ``request.state.user``;
    otherwise the X-User-Handle header is used. Without either, the caller
    is the host's default single-user profile.
    """
    user = getattr(request.state, "user", None)
    handle = getattr(user, "handle", None)
    if handle is None and isinstance(user, dict):
        handle = user.get("handle")
    if handle is None:
        handle = request.headers.get(HANDLE_HEADER)
    if not handle:
        handle = get_settings().default_user_handle
    return CallerIdentity(handle=handle)


def get_admin_predicate(request: Request) -> AdminPredicate:
    """Inject the authorization predicate installed on app state."""
    return getattr(request.app.state, "is_admin", None) or default_is_admin


def require_admin(
    identity: CallerIdentity = Depends(get_caller_identity),
    is_admin: AdminPredicate = Depends(get_admin_predicate),
) -> CallerIdentity:
    """Guard for mutating routes. Raises 403 for non-admin callers."""
    if not is_admin(identity):
        logger.warning("Rejected mutating request from %r", identity.handle)
        raise to_http_exception(ForbiddenError("Admin access required"))
    return identity


def get_store(session: Session = Depends(get_session)) -> AssociationStore:
    return AssociationStore(session)
