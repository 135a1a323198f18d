class StyleEngineError(Exception):
    """Base class for all engine errors."""


class NotFound(StyleEngineError):
    def __init__(self, kind: str, identifier: str):
        super().__init__(f"{kind} not found: {identifier}")
        self.kind = kind
        self.identifier = identifier


class InvalidEmbedding(StyleEngineError):
    """Embedding has the wrong dimensionality or non-finite values."""

    def __init__(self, reason: str, item_id: str | None = None):
        message = f"Invalid embedding for {item_id}: {reason}" if item_id else f"Invalid embedding: {reason}"
        super().__init__(message)
        self.reason = reason
        self.item_id = item_id


class PoolExhausted(StyleEngineError):
    """
    No eligible candidates remain for the session.

    This is an expected terminal state, not a fault. Callers render a
    completion screen from the session tallies.
    """

    def __init__(self, user_id: str, session_id: str, like_count: int = 0, skip_count: int = 0):
        super().__init__(f"Candidate pool exhausted for session {session_id}")
        self.user_id = user_id
        self.session_id = session_id
        self.like_count = like_count
        self.skip_count = skip_count


class ConcurrentProfileConflict(StyleEngineError):
    """A profile write raced another writer outside the per-user update section."""

    def __init__(self, user_id: str, expected_count: int, actual_count: int):
        super().__init__(
            f"Profile for {user_id} changed underneath the writer "
            f"(expected event_count={expected_count}, found {actual_count})"
        )
        self.user_id = user_id
        self.expected_count = expected_count
        self.actual_count = actual_count
