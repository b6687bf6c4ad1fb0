"""Users subsystem: sessions, the user directory and its durability sidecar."""

from .directory import User, UserDirectory
from .persistence import UserDataStore
from .router import create_users_router
from .sessions import SessionStore

__all__ = [
    "SessionStore",
    "User",
    "UserDataStore",
    "UserDirectory",
    "create_users_router",
]
