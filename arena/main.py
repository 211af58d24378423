"""
Arena Teams: FastAPI application entry-point.

Run with:
    uvicorn arena.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

import arena.models  # noqa: F401  (register tables on Base.metadata)
from arena.config import settings
from arena.database import Base, engine
from arena.exceptions import ArenaError

# ── Import routers ──
from arena.routers import (
    auth,
    chat,
    competitions,
    invitations,
    join_requests,
    matching,
    notifications,
    realtime,
    teams,
    users,
)

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan: create tables on startup ──
@asynccontextmanager
async def lifespan(app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("%s started (%s)", settings.APP_NAME, settings.ENVIRONMENT)
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    description="Competition team formation: skill matching, invitations and join requests.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=("*",))


# ── Domain errors → JSON ──
@app.exception_handler(ArenaError)
async def arena_error_handler(request: Request, exc: ArenaError):
    logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


# ── Register API routers ──
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(competitions.router)
app.include_router(teams.router)
app.include_router(chat.router)
app.include_router(matching.router)
app.include_router(invitations.router)
app.include_router(join_requests.router)
app.include_router(notifications.router)
app.include_router(realtime.router)


@app.get("/health")
async def health():
    return {"status": "ok", "app": settings.APP_NAME}
