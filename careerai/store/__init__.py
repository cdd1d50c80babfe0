from .base import DataStore
from .memory import InMemoryStore
from .sql import SqlStore

from careerai.config import Settings
from careerai.log import get_logger

log = get_logger(__name__)

__all__ = ["DataStore", "InMemoryStore", "SqlStore", "get_store"]


def get_store(settings: Settings) -> DataStore:
    if settings.database_url:
        return SqlStore(settings.database_url)

    log.warning("No DATABASE_URL set — data is kept in memory and lost on restart")
    return InMemoryStore()
