"""Core modules for Bazar Buddy."""

from .config import settings, load_config
from .database import get_db, init_db, AsyncSessionLocal

__all__ = ["settings", "load_config", "get_db", "init_db", "AsyncSessionLocal"]
