"""Timestamped journal helpers shared by marker and garden-wide logs."""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

import pandas as pd

from gardenmap.core.errors import NotFoundError
from gardenmap.core.models import IdFactory, ImageRef, JournalEntry, now_ms


def new_entry(
    id_factory: IdFactory,
    text: str,
    photos: Iterable[ImageRef] = (),
    timestamp: Optional[int] = None,
) -> Optional[JournalEntry]:
    """Build a journal entry, or ``None`` when it would be empty.

    Parameters
    ----------
    id_factory : IdFactory
        Source of the entry id.
    text : str
        Entry text; surrounding whitespace is stripped.
    photos : Iterable[str], optional
        Attached image references.
    timestamp : int, optional
        Millisecond timestamp, defaults to now.

    Returns
    -------
    JournalEntry | None
        ``None`` if both the text and the photo list are empty.
    """
    photo_refs = tuple(photos)
    clean_text = (text or "").strip()
    if not clean_text and not photo_refs:
        return None
    return JournalEntry(
        id=id_factory.next_id(),
        timestamp=now_ms() if timestamp is None else int(timestamp),
        text=clean_text,
        photos=photo_refs,
    )


def newest_first(entries: Iterable[JournalEntry]) -> list[JournalEntry]:
    """Sort entries for display, latest timestamp first (stable for ties)."""
    return sorted(entries, key=lambda entry: entry.timestamp, reverse=True)


def without_entry(entries: Sequence[JournalEntry], entry_id: int) -> list[JournalEntry]:
    """Return ``entries`` minus the one with ``entry_id``.

    Raises
    ------
    NotFoundError
        If no entry has that id.
    """
    kept = [entry for entry in entries if entry.id != entry_id]
    if len(kept) == len(entries):
        raise NotFoundError("journal entry", entry_id)
    return kept


def entries_to_dataframe(entries: Iterable[JournalEntry]) -> pd.DataFrame:
    """Tabulate entries newest first with a datetime column."""
    rows = [
        {
            "id": entry.id,
            "timestamp": entry.timestamp,
            "text": entry.text,
            "photo_count": len(entry.photos),
        }
        for entry in newest_first(entries)
    ]
    if not rows:
        return pd.DataFrame(columns=["id", "timestamp", "time", "text", "photo_count"])
    result_df = pd.DataFrame(rows)
    result_df["time"] = pd.to_datetime(result_df["timestamp"], unit="ms")
    return result_df[["id", "timestamp", "time", "text", "photo_count"]]


class JournalLog:
    """Garden-wide journal of the active project.

    Examples
    --------
    >>> log = JournalLog()
    >>> entry = log.add("Sowed carrots")
    >>> [item.text for item in log.entries()]
    ['Sowed carrots']
    """

    def __init__(self, id_factory: Optional[IdFactory] = None) -> None:
        self._entries: list[JournalEntry] = []
        self._id_factory = id_factory or IdFactory()

    def __len__(self) -> int:
        return len(self._entries)

    def entries(self) -> list[JournalEntry]:
        """Entries in display order (newest first)."""
        return newest_first(self._entries)

    def add(
        self,
        text: str,
        photos: Iterable[ImageRef] = (),
        timestamp: Optional[int] = None,
    ) -> Optional[JournalEntry]:
        """Add an entry; empty entries are ignored and return ``None``."""
        entry = new_entry(self._id_factory, text, photos, timestamp)
        if entry is None:
            return None
        self._entries.insert(0, entry)
        return entry

    def delete(self, entry_id: int) -> None:
        """Delete one entry by id, raising :class:`NotFoundError` if absent."""
        self._entries = without_entry(self._entries, entry_id)

    def reset(self, entries: Iterable[JournalEntry]) -> None:
        """Replace all entries, used when the active project changes."""
        self._entries = list(entries)
        for entry in self._entries:
            self._id_factory.observe(entry.id)

    def raw_entries(self) -> list[JournalEntry]:
        """Entries in storage order, for persistence."""
        return list(self._entries)

    def to_dataframe(self) -> pd.DataFrame:
        return entries_to_dataframe(self._entries)
