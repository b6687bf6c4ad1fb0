"""User directory: identities and subscription sets."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from threading import Lock

from ..errors import InvalidInstrument, UnknownUser
from ..market.instruments import in_display_order, is_supported

logger = logging.getLogger(__name__)

# Called with (user_id, subscriptions) after every successful subscribe/unsubscribe
ChangeListener = Callable[[str, frozenset[str]], None]


@dataclass(frozen=True, slots=True)
class User:
    """Immutable view of a user. The directory swaps in a new one on change."""

    id: str
    email: str
    subscriptions: frozenset[str] = field(default_factory=frozenset)

    def to_record(self) -> dict:
        """Snapshot-file representation."""
        return {
            "id": self.id,
            "email": self.email,
            "subscriptions": in_display_order(self.subscriptions),
        }


class UserDirectory:
    """Source of truth for who exists and what each user is subscribed to.

    One lock guards both indexes, so get_or_create() is atomic: concurrent
    logins with the same new email produce exactly one user. Listeners run
    after the lock is released, in the caller's thread.
    """

    def __init__(self) -> None:
        self._by_id: dict[str, User] = {}
        self._id_by_email: dict[str, str] = {}
        self._lock = Lock()
        self._listeners: list[ChangeListener] = []

    def add_listener(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def get_or_create(self, email: str) -> User:
        """Return the user with ``email`` (exact match), creating it if absent."""
        with self._lock:
            user_id = self._id_by_email.get(email)
            if user_id is not None:
                return self._by_id[user_id]
            user = User(id=str(uuid.uuid4()), email=email)
            self._by_id[user.id] = user
            self._id_by_email[email] = user.id
        logger.info("Created user %s", user.id)
        return user

    def get(self, user_id: str) -> User:
        with self._lock:
            user = self._by_id.get(user_id)
        if user is None:
            raise UnknownUser()
        return user

    def subscribe(self, user_id: str, symbol: object) -> frozenset[str]:
        """Add ``symbol`` to the user's set. Re-subscribing is a no-op success."""
        if not is_supported(symbol):
            raise InvalidInstrument()
        return self._mutate(user_id, lambda subs: subs | {symbol})

    def unsubscribe(self, user_id: str, symbol: object) -> frozenset[str]:
        """Remove ``symbol`` if held. Removing an absent symbol is a no-op success."""
        return self._mutate(user_id, lambda subs: subs - {symbol})

    def subscriptions_of(self, user_id: str) -> frozenset[str]:
        return self.get(user_id).subscriptions

    def _mutate(
        self,
        user_id: str,
        change: Callable[[frozenset[str]], frozenset[str]],
    ) -> frozenset[str]:
        with self._lock:
            user = self._by_id.get(user_id)
            if user is None:
                raise UnknownUser()
            subscriptions = frozenset(change(user.subscriptions))
            self._by_id[user_id] = replace(user, subscriptions=subscriptions)

        for listener in self._listeners:
            try:
                listener(user_id, subscriptions)
            except Exception:
                logger.exception("Subscription listener %r failed", listener)
        return subscriptions

    # --- Snapshot support ---

    def records(self) -> list[dict]:
        """Serializable copy of every user, for the durability snapshot."""
        with self._lock:
            users = list(self._by_id.values())
        return [user.to_record() for user in users]

    def restore(self, records: Iterable[object]) -> int:
        """Load users from snapshot records. Returns how many were loaded.

        Records missing an id or email are skipped, unknown symbols are
        dropped, and a repeated email keeps the first record seen.
        """
        loaded = 0
        with self._lock:
            for record in records:
                if not isinstance(record, dict):
                    logger.warning("Skipping malformed user record: %r", record)
                    continue
                user_id = record.get("id")
                email = record.get("email")
                if not isinstance(user_id, str) or not isinstance(email, str):
                    logger.warning("Skipping user record without id/email: %r", record)
                    continue
                if email in self._id_by_email or user_id in self._by_id:
                    logger.warning("Skipping duplicate user record for %s", user_id)
                    continue

                raw_subs = record.get("subscriptions") or []
                if not isinstance(raw_subs, list):
                    raw_subs = []
                subscriptions = frozenset(s for s in raw_subs if is_supported(s))
                if len(subscriptions) != len(set(map(str, raw_subs))):
                    logger.warning("Dropped unsupported symbols for user %s", user_id)

                self._by_id[user_id] = User(id=user_id, email=email, subscriptions=subscriptions)
                self._id_by_email[email] = user_id
                loaded += 1
        return loaded

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_id)

    def __contains__(self, user_id: object) -> bool:
        with self._lock:
            return user_id in self._by_id
