"""Shared pytest fixtures for vaultimg tests."""

from __future__ import annotations

import io
from typing import Optional

import pytest
from PIL import Image


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


class MemoryStorage:
    """In-memory host storage."""

    def __init__(self, settings_record: Optional[dict] = None):
        self.folders: set[str] = set()
        self.files: dict[str, bytes] = {}
        self.settings_record = settings_record
        self.saved: list[dict] = []

    def exists(self, path: str) -> bool:
        return path in self.folders or path in self.files

    def create_folder(self, path: str) -> None:
        self.folders.add(path)

    def write_binary(self, path: str, data: bytes) -> None:
        self.files[path] = data

    def load_settings(self) -> Optional[dict]:
        return self.settings_record

    def save_settings(self, record: dict) -> None:
        self.settings_record = dict(record)
        self.saved.append(dict(record))


class RecordingEditor:
    def __init__(self):
        self.inserted: list[str] = []

    def replace_selection(self, text: str) -> None:
        self.inserted.append(text)


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def editor() -> RecordingEditor:
    return RecordingEditor()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def png_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color=(200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()
