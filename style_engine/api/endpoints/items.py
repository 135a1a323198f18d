from fastapi import APIRouter, HTTPException

from style_engine.models.item import Item
from style_engine.services.shuffle_service import shuffle_service

router = APIRouter(tags=["items"])


@router.put("/items/{item_id}", summary="Tagging pipeline write path")
async def upsert_item(item_id: str, item: Item) -> dict:
    if item.id != item_id:
        raise HTTPException(status_code=400, detail="Item id in path and body differ")
    shuffle_service.ingest_item(item)
    return {"id": item.id, "analyzed": item.is_analyzed}


@router.get("/users/{user_id}/items/pending", summary="Items still waiting for AI analysis")
async def list_pending(user_id: str) -> dict:
    pending = shuffle_service.engine.store.list_pending(user_id)
    return {"items": [it.model_dump(mode="json", exclude={"embedding"}) for it in pending]}
