"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from survey_backend.config import get_settings
from survey_backend.store import InMemoryRowStore, RowStore, SqlRowStore

_row_store: RowStore | None = None


def get_row_store() -> RowStore:
    """
    Return a singleton row store so submissions persist across requests.
    """
    global _row_store
    if _row_store:
        return _row_store

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        _row_store = InMemoryRowStore()
    else:
        _row_store = SqlRowStore(settings.database_url)
    return _row_store
