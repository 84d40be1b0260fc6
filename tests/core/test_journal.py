"""Tests for journal entries and the garden journal log."""

import pytest

from gardenmap.core.errors import NotFoundError
from gardenmap.core.journal import JournalLog, new_entry, newest_first, without_entry
from gardenmap.core.models import IdFactory, JournalEntry


def test_new_entry_ignores_empty_input() -> None:
    """Blank text without photos creates nothing."""
    factory = IdFactory(clock=lambda: 1)

    assert new_entry(factory, "   ") is None
    photo_only = new_entry(factory, "", photos=["uploads/a.jpg"], timestamp=5)
    assert photo_only is not None
    assert photo_only.photos == ("uploads/a.jpg",)
    assert photo_only.timestamp == 5


def test_entries_are_immutable() -> None:
    """Journal entries are frozen once created."""
    entry = new_entry(IdFactory(clock=lambda: 1), "Watered")

    with pytest.raises(AttributeError):
        entry.text = "Changed"


def test_log_lists_newest_first_and_deletes() -> None:
    """The log displays latest timestamps first and deletes by id."""
    log = JournalLog(IdFactory(clock=lambda: 100))
    old = log.add("Planted garlic", timestamp=1_000)
    new = log.add("Harvested", timestamp=2_000)

    assert [entry.id for entry in log.entries()] == [new.id, old.id]

    log.delete(old.id)
    assert [entry.text for entry in log.entries()] == ["Harvested"]
    with pytest.raises(NotFoundError):
        log.delete(old.id)


def test_newest_first_sorts_by_timestamp() -> None:
    """Timestamps, not list order, decide display order."""
    entries = [
        JournalEntry(id=1, timestamp=10, text="a"),
        JournalEntry(id=2, timestamp=30, text="b"),
        JournalEntry(id=3, timestamp=20, text="c"),
    ]

    assert [entry.id for entry in newest_first(entries)] == [2, 3, 1]
    assert [entry.id for entry in without_entry(entries, 3)] == [1, 2]


def test_log_dataframe_has_datetime_column() -> None:
    """Dataframe export converts millisecond timestamps."""
    log = JournalLog(IdFactory(clock=lambda: 100))
    log.add("Mulched beds", timestamp=1_700_000_000_000)

    entries_df = log.to_dataframe()
    assert list(entries_df.columns) == ["id", "timestamp", "time", "text", "photo_count"]
    assert entries_df["time"].iloc[0].year == 2023
