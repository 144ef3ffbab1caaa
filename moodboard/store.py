"""
Entry storage implementation for the Moodboard service.

This module provides an in-memory, append-only log of moodboard entries.
The log is owned by whoever creates it and is handed to the application
explicitly, so there is no module-level state.
"""

import asyncio

from .models import Entry


class EntryLog:
    """
    In-memory ordered log of entries.

    The only mutation is append; reads return a snapshot of the whole log in
    insertion order. Both operations hold the same asyncio lock, so a reader
    sees either the state before or after a concurrent append, never a
    partially written entry.
    """

    def __init__(self) -> None:
        self._entries: list[Entry] = []
        self._lock = asyncio.Lock()

    async def append(self, entry: Entry) -> None:
        """
        Add an entry to the end of the log.

        Args:
            entry: The entry to store
        """
        async with self._lock:
            self._entries.append(entry)

    async def read(self) -> list[Entry]:
        """
        Get every entry in insertion order.

        Returns:
            A copy of the log; mutating it does not affect the store
        """
        async with self._lock:
            return list(self._entries)
