from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from .routers import brother_dates, point_categories, points, semesters
from .db import init_db
from .core.config import get_settings
from .core.logs import setup_logging
from .core.nats import nats_connect, nats_close
from .core.redis import ping_redis, close_redis

settings = get_settings()
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.log_level)
    await init_db()

    # best-effort connect to infra; service still runs if these fail
    if settings.enable_nats_events:
        try:
            await nats_connect()
        except Exception as exc:
            logger.warning("NATS unavailable, audit events are dropped until it is reachable: %s", exc)
    if settings.rl_enabled:
        await ping_redis()

    logger.info("brotherhood-svc started")
    yield

    try:
        await nats_close()
    except Exception as exc:
        logger.warning("NATS drain failed: %s", exc)
    await close_redis()

app = FastAPI(title="brotherhood-svc", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(semesters.router)
app.include_router(point_categories.router)
app.include_router(points.router)
app.include_router(brother_dates.router)

@app.get("/health")
async def health():
    return {"status": "ok", "service": "brotherhood-svc"}

Instrumentator().instrument(app).expose(app)
