"""Database module for persisted recovery analyses."""

from .database import Database, get_db
from .models import CachedAnalysis
from .cache_store import SqlRecoveryCache

__all__ = ["Database", "get_db", "CachedAnalysis", "SqlRecoveryCache"]
