from fastapi import APIRouter

from .endpoints.health import router as health_router
from .endpoints.items import router as items_router
from .endpoints.profile import router as profile_router
from .endpoints.shuffle import router as shuffle_router

api_router = APIRouter()


@api_router.get("/")
async def root():
    return {"message": "Style engine API is running"}


api_router.include_router(health_router)
api_router.include_router(items_router)
api_router.include_router(shuffle_router)
api_router.include_router(profile_router)
