"""Row store and session memory."""

from .models import ArticleRecord, ArticleContentRecord
from .sqlite_store import SQLiteRowStore
from .context_manager import SessionContextManager

__all__ = [
    "ArticleRecord",
    "ArticleContentRecord",
    "SQLiteRowStore",
    "SessionContextManager",
]
