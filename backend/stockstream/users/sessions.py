"""Session tokens issued at login."""

from __future__ import annotations

import logging
import secrets
from threading import Lock

from ..errors import Unauthorized

logger = logging.getLogger(__name__)


class SessionStore:
    """Maps opaque session tokens to user ids.

    Sessions live for the whole process unless revoked through logout; there
    is no expiry. A user may hold any number of concurrent sessions. All
    operations take a single lock, so logins and channel authentications can
    interleave freely.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, str] = {}
        self._lock = Lock()

    def create(self, user_id: str) -> str:
        """Issue a new unpredictable token for ``user_id``."""
        while True:
            token = secrets.token_urlsafe(32)
            with self._lock:
                if token not in self._sessions:
                    self._sessions[token] = user_id
                    return token

    def resolve(self, token: object) -> str | None:
        """User id for ``token``, or None when unknown."""
        if not isinstance(token, str):
            return None
        with self._lock:
            return self._sessions.get(token)

    def require(self, token: object) -> str:
        """Like resolve(), but raises Unauthorized for unknown tokens."""
        user_id = self.resolve(token)
        if user_id is None:
            raise Unauthorized()
        return user_id

    def revoke(self, token: object) -> bool:
        """Forget ``token``. Returns False if it was not active."""
        if not isinstance(token, str):
            return False
        with self._lock:
            return self._sessions.pop(token, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
