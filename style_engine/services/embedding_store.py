import threading
from collections.abc import Iterable

from loguru import logger

from style_engine.core.config import settings
from style_engine.core.exceptions import InvalidEmbedding, NotFound
from style_engine.core.security import redact_user_id
from style_engine.models.item import Item
from style_engine.services.profile.similarity import normalize, validate_embedding


class EmbeddingStore:
    """
    Read-only view over items written by the AI tagging pipeline.

    The engine only calls `get_item`, `list_eligible` and `list_pending`.
    `load`/`upsert` exist for the pipeline side (and tests) to feed the view.
    """

    def __init__(self, dim: int | None = None, items: Iterable[Item] | None = None):
        self.dim = dim or settings.EMBEDDING_DIM
        self._items: dict[str, Item] = {}
        self._lock = threading.Lock()
        if items:
            self.load(items)

    # Pipeline side

    def load(self, items: Iterable[Item]) -> None:
        for item in items:
            self.upsert(item)

    def upsert(self, item: Item) -> None:
        with self._lock:
            # Re-inserting keeps the original position so ordering stays stable
            self._items[item.id] = item

    # Engine side

    def get_item(self, item_id: str) -> Item:
        """
        Get a single item with its embedding re-normalized.

        Raises:
            NotFound: unknown item id
        """
        item = self._items.get(item_id)
        if item is None:
            raise NotFound("item", item_id)
        return self._read(item)

    def list_eligible(self, user_id: str) -> list[Item]:
        """
        Items owned by the user that have a usable embedding, in insertion order.

        Items with a malformed embedding are treated as not yet analysed.
        """
        with self._lock:
            owned = [it for it in self._items.values() if it.user_id == user_id]

        eligible = []
        for item in owned:
            if item.embedding is None:
                continue
            try:
                eligible.append(self._read(item))
            except InvalidEmbedding as e:
                logger.warning(f"[{redact_user_id(user_id)}] Skipping item with unusable embedding: {e}")
        return eligible

    def list_pending(self, user_id: str) -> list[Item]:
        """Items owned by the user still waiting for AI analysis."""
        with self._lock:
            return [it for it in self._items.values() if it.user_id == user_id and it.embedding is None]

    def _read(self, item: Item) -> Item:
        if item.embedding is None:
            return item
        vec = validate_embedding(item.embedding, self.dim, item.id)
        return item.model_copy(update={"embedding": normalize(vec).tolist()})
