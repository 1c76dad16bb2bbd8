from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlmodel import Session, text

from character_manager.db import get_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

SERVICE_NAME = "sillytavern-character-manager"
VERSION = "1.0.0"


@router.get("/health")
async def health(session: Session = Depends(get_session)):
    db_status = "ok"
    try:
        session.exec(text("SELECT 1"))
    except Exception as exc:
        logger.warning("Health check could not reach the database", exc_info=True)
        db_status = f"error: {exc}"

    body = {
        "status": "healthy" if db_status == "ok" else "unhealthy",
        "service": SERVICE_NAME,
        "version": VERSION,
        "checks": {"database": db_status},
    }
    if db_status != "ok":
        return JSONResponse(status_code=503, content=body)
    return body
