from fastapi import APIRouter, HTTPException
from loguru import logger

from style_engine.core.exceptions import ConcurrentProfileConflict
from style_engine.core.security import redact_user_id
from style_engine.services.shuffle_service import shuffle_service

router = APIRouter(prefix="/users/{user_id}/profile", tags=["profile"])


@router.get("")
async def get_profile(user_id: str) -> dict:
    profile = await shuffle_service.get_profile(user_id)
    return profile.summary()


@router.post("/rebuild")
async def rebuild_profile(user_id: str) -> dict:
    """Recompute the profile from the interaction log."""
    try:
        profile = await shuffle_service.rebuild(user_id)
    except ConcurrentProfileConflict as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.exception(f"[{redact_user_id(user_id)}] Error rebuilding profile: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return profile.summary()
