"""Flat-file durability for the user directory."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path

from .directory import UserDirectory

logger = logging.getLogger(__name__)


class UserDataStore:
    """Keeps a JSON snapshot of the UserDirectory on disk.

    The snapshot is a list of ``{id, email, subscriptions}`` records,
    rewritten in full on every save. Failures are logged and absorbed: the
    in-memory directory stays authoritative until the next good write.

    Saves scheduled from the event loop run in a worker thread and are
    serialized. A save reads the directory when it starts, not when it was
    scheduled, so the newest completed write always has the latest state and
    a burst of changes collapses into one pending write.
    """

    def __init__(self, path: str | Path, directory: UserDirectory) -> None:
        self._path = Path(path)
        self._directory = directory
        self._write_lock: asyncio.Lock | None = None
        self._queued = False
        self._pending: set[asyncio.Task] = set()

    @property
    def path(self) -> Path:
        return self._path

    def attach(self) -> None:
        """Save after every successful subscription change."""
        self._directory.add_listener(self.schedule_save)

    def load(self) -> int:
        """Populate the directory from the snapshot. Returns users loaded.

        A missing file means a fresh start. An unreadable or unparseable file
        is logged and also treated as a fresh start.
        """
        if not self._path.exists():
            logger.info("No user snapshot at %s, starting empty", self._path)
            return 0

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.exception("Failed to read user snapshot %s, starting empty", self._path)
            return 0

        if not isinstance(data, list):
            logger.error(
                "User snapshot %s is not a list (got %s), starting empty",
                self._path,
                type(data).__name__,
            )
            return 0

        loaded = self._directory.restore(data)
        logger.info("Loaded %d users from %s", loaded, self._path)
        return loaded

    def save(self) -> bool:
        """Write the current directory synchronously. Returns success."""
        return self._write(self._directory.records())

    def schedule_save(self, *_: object) -> None:
        """Fire-and-forget save. Falls back to a blocking save outside a loop."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.save()
            return

        if self._queued:
            return
        self._queued = True
        task = loop.create_task(self._save_async(), name="user-snapshot-save")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def flush(self) -> None:
        """Wait for every scheduled save to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _save_async(self) -> None:
        if self._write_lock is None:
            self._write_lock = asyncio.Lock()
        async with self._write_lock:
            self._queued = False
            records = self._directory.records()
            await asyncio.to_thread(self._write, records)

    def _write(self, records: list[dict]) -> bool:
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as fh:
                json.dump(records, fh, indent=2)
            os.replace(tmp_path, self._path)
        except (OSError, TypeError, ValueError):
            logger.exception("Failed to save user snapshot to %s", self._path)
            return False
        logger.debug("Saved %d users to %s", len(records), self._path)
        return True
