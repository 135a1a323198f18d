from fastapi import APIRouter, HTTPException
from loguru import logger

from style_engine.core.exceptions import PoolExhausted
from style_engine.core.security import redact_user_id
from style_engine.models.decision import DecisionError, DecisionRequest, DecisionResult
from style_engine.models.item import Item
from style_engine.services.shuffle_service import shuffle_service

router = APIRouter(prefix="/users/{user_id}", tags=["shuffle"])


def _public_item(item: Item) -> dict:
    """Item payload for the caller. The raw embedding stays server-side."""
    return item.model_dump(mode="json", exclude={"embedding"})


@router.get("/sessions/{session_id}/pool")
async def get_candidate_pool(user_id: str, session_id: str) -> dict:
    """
    Get the ranked pool for the next card.

    An exhausted pool is a normal outcome: it is returned with the session
    tallies so the caller can render the completion screen.
    """
    try:
        ranked = await shuffle_service.next_pool(user_id, session_id)
    except PoolExhausted as e:
        return {"exhausted": True, "items": [], "liked": e.like_count, "skipped": e.skip_count}
    except Exception as e:
        logger.exception(f"[{redact_user_id(user_id)}] Error building pool for session {session_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return {"exhausted": False, "items": [_public_item(it) for it in ranked]}


@router.post("/decisions", response_model=DecisionResult)
async def record_decision(user_id: str, request: DecisionRequest) -> DecisionResult:
    try:
        result = await shuffle_service.record_decision(
            user_id, request.item_id, request.kind, session_id=request.session_id
        )
    except Exception as e:
        logger.exception(f"[{redact_user_id(user_id)}] Error recording decision on {request.item_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    if not result.accepted:
        status_code = 404 if result.error == DecisionError.NOT_FOUND else 422
        raise HTTPException(status_code=status_code, detail=result.model_dump(mode="json"))
    return result


@router.delete("/sessions/{session_id}")
async def end_session(user_id: str, session_id: str) -> dict:
    session = shuffle_service.end_session(user_id, session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return {"session_id": session_id, "liked": session.like_count, "skipped": session.skip_count}
