"""Pytest bootstrap helpers shared by all test domains."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest


def _append_repo_root() -> None:
    """Ensure repository root is present in import path."""
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_text = str(repo_root)
    if repo_root_text in sys.path:
        return
    sys.path.insert(0, repo_root_text)


_append_repo_root()

# Run Qt headless when no display is available.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from gardenmap.core.errors import DataFileError  # noqa: E402
from gardenmap.core.models import IdFactory  # noqa: E402
from gardenmap.core.session import EditorSession  # noqa: E402


class FakePersistence:
    """In-memory persistence double recording every save."""

    def __init__(self, projects=None, fail_save: bool = False, fail_load: bool = False) -> None:
        self.stored = [project.copy() for project in projects or []]
        self.save_calls = 0
        self.fail_save = fail_save
        self.fail_load = fail_load

    def load(self):
        if self.fail_load:
            raise DataFileError("garden-data.json is not valid JSON")
        return [project.copy() for project in self.stored]

    def save(self, projects):
        self.save_calls += 1
        if self.fail_save:
            raise OSError("disk full")
        self.stored = [project.copy() for project in projects]
        return [project.copy() for project in self.stored]


class FakeResizer:
    """Resizer double returning a readable reference per call."""

    def __init__(self) -> None:
        self.calls: list[tuple[object, int]] = []

    def resize(self, raw_image, max_width):
        self.calls.append((raw_image, max_width))
        return f"resized:{raw_image}@{max_width}"


class CountingClock:
    """Millisecond clock advancing by one per call."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.value = start

    def __call__(self) -> int:
        self.value += 1
        return self.value


@pytest.fixture
def fake_persistence() -> FakePersistence:
    return FakePersistence()


@pytest.fixture
def fake_resizer() -> FakeResizer:
    return FakeResizer()


@pytest.fixture
def failing_persistence() -> FakePersistence:
    return FakePersistence(fail_save=True)


@pytest.fixture
def make_session(fake_resizer):
    """Factory building a session over stored projects or a given double."""

    def _make(projects=None, persistence=None) -> EditorSession:
        if persistence is None:
            persistence = FakePersistence(projects)
        return EditorSession(
            persistence,
            fake_resizer,
            id_factory=IdFactory(clock=CountingClock()),
        )

    return _make


@pytest.fixture
def make_persistence():
    """Factory for persistence doubles preloaded with projects."""

    def _make(projects=None, fail_save: bool = False, fail_load: bool = False) -> FakePersistence:
        return FakePersistence(projects, fail_save=fail_save, fail_load=fail_load)

    return _make
