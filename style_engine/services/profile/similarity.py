from collections.abc import Iterable, Mapping

import numpy as np

from style_engine.core.constants import NORM_EPSILON
from style_engine.core.exceptions import InvalidEmbedding


def validate_embedding(values: Iterable[float] | None, dim: int, item_id: str | None = None) -> np.ndarray:
    """
    Convert an embedding to a float64 array after a basic sanity check.

    Raises:
        InvalidEmbedding: missing, wrong dimensionality, or non-finite values
    """
    if values is None:
        raise InvalidEmbedding("missing embedding", item_id)
    try:
        vec = np.asarray(list(values), dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidEmbedding(f"not numeric ({e})", item_id) from e

    if vec.ndim != 1 or vec.shape[0] != dim:
        raise InvalidEmbedding(f"expected {dim} dimensions, got {vec.size}", item_id)
    if not np.all(np.isfinite(vec)):
        raise InvalidEmbedding("non-finite values", item_id)
    return vec


def normalize(vec: np.ndarray) -> np.ndarray:
    """Rescale to unit length. A (near) zero vector is returned as zeros."""
    norm = float(np.linalg.norm(vec))
    if norm < NORM_EPSILON:
        return np.zeros_like(vec)
    return vec / norm


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Cosine similarity; 0.0 when either side has no direction."""
    norm_a = float(np.linalg.norm(a))
    norm_b = float(np.linalg.norm(b))
    if norm_a < NORM_EPSILON or norm_b < NORM_EPSILON:
        return 0.0
    return float(np.dot(a, b) / (norm_a * norm_b))


def sparse_dot(a: Mapping[str, float], b: Mapping[str, float]) -> float:
    """Dot product of two sparse tag vectors over the union of their tags (absent = 0)."""
    if not a or not b:
        return 0.0
    # Only shared tags contribute; iterate sorted for a stable summation order
    shared = sorted(set(a) & set(b))
    return float(sum(a[tag] * b[tag] for tag in shared))
