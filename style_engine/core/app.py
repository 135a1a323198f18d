from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from style_engine.api.main import api_router
from style_engine.services.style_store import style_store

from .config import settings
from .version import __version__


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events (startup/shutdown).
    """
    logger.info(f"Style engine {__version__} starting (persistence={'on' if settings.PERSISTENCE_ENABLED else 'off'})")
    yield
    try:
        await style_store.close()
    except Exception as exc:
        logger.warning(f"Failed to close StyleStore Redis client: {exc}")


app = FastAPI(
    title="Style Engine",
    description="Style preference learning and candidate ranking for wardrobe shuffles",
    version=__version__,
    lifespan=lifespan,
    docs_url=None if settings.APP_ENV == "production" else "/docs",
    redoc_url=None if settings.APP_ENV == "production" else "/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)
