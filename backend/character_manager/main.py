from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from character_manager import plugin
from character_manager.config import get_settings

settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    plugin.init(app)
    yield
    plugin.exit()


app = FastAPI(
    title="Character Manager",
    description="Tags and categories for host chat characters",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    return {"plugin": plugin.PLUGIN_INFO, "api_prefix": settings.api_prefix}


if __name__ == "__main__":
    uvicorn.run(
        "character_manager.main:app",
        host="0.0.0.0",
        port=8000,
    )
