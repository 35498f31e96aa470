from .local_storage import LocalStorage
from .migrations import CURRENT_SCHEMA_VERSION, migrate
from .repository import StateRepository

__all__ = ["CURRENT_SCHEMA_VERSION", "LocalStorage", "StateRepository", "migrate"]
