"""Shared fakes for the upload broker tests."""
import asyncio
from typing import Dict, List, Optional

import pytest

from drive_uploader.errors import CredentialExchangeError, UpstreamError


class FakeTokenSource:
    """Hands out numbered tokens and counts exchanges."""

    def __init__(self, fail: bool = False):
        self.calls = 0
        self.fail = fail

    async def get_access_token(self) -> str:
        self.calls += 1
        if self.fail:
            raise CredentialExchangeError("Failed to retrieve access token")
        return f"token-{self.calls}"


class FakeDrive:
    """
    In-memory Drive folder tree.

    ``events`` records every provider call in order so tests can assert on
    sequencing (e.g. session opened before any copy).
    """

    def __init__(self):
        self.folders: Dict[str, List[Dict[str, str]]] = {}
        self.files: Dict[str, Dict] = {}
        self.events: List[tuple] = []
        self.failing_folders: set = set()
        self.copy_delay: float = 0.0
        self.session_error: Optional[Exception] = None
        self._next_id = 0

    def add_folder(self, parent_id: str, name: str, folder_id: Optional[str] = None) -> str:
        folder_id = folder_id or f"folder-{name.lower().replace(' ', '-')}"
        self.folders.setdefault(parent_id, []).append({"id": folder_id, "name": name})
        return folder_id

    def add_file(self, file_id: str, app_properties: Optional[Dict[str, str]] = None):
        self.files[file_id] = {"id": file_id, "appProperties": app_properties}

    async def list_child_folders(self, parent_id: str):
        self.events.append(("list", parent_id))
        return list(self.folders.get(parent_id, []))

    async def generate_file_id(self) -> str:
        self._next_id += 1
        self.events.append(("generate_id",))
        return f"reserved-{self._next_id}"

    async def create_resumable_session(
        self,
        folder_id,
        filename,
        app_properties=None,
        mime_type=None,
        file_id=None,
        access_token=None,
    ) -> str:
        self.events.append(("session", folder_id, filename, app_properties, file_id))
        if self.session_error is not None:
            raise self.session_error
        return f"https://upload.example/{folder_id}/{filename}"

    async def get_file(self, file_id, fields="id,name,appProperties"):
        self.events.append(("get", file_id))
        return self.files.get(file_id)

    async def copy_file(self, file_id, name, parent_id, app_properties=None) -> str:
        self.events.append(("copy_start", parent_id))
        if self.copy_delay:
            await asyncio.sleep(self.copy_delay)
        if parent_id in self.failing_folders:
            raise UpstreamError(f"Drive API error 403 copying into {parent_id}")
        new_id = f"copy-of-{file_id}-in-{parent_id}"
        self.files[new_id] = {"id": new_id, "name": name, "parents": [parent_id], "appProperties": app_properties}
        self.events.append(("copy", parent_id, name, app_properties))
        return new_id

    async def find_files(self, name):
        self.events.append(("find", name))
        return [f for f in self.files.values() if f.get("name") == name]

    def event_names(self) -> List[str]:
        return [e[0] for e in self.events]


ROOT = "root-folder"


@pytest.fixture
def root():
    return ROOT


@pytest.fixture
def tokens():
    return FakeTokenSource()


@pytest.fixture
def failing_tokens():
    return FakeTokenSource(fail=True)


@pytest.fixture
def drive():
    """course/centre/batch/level tree with three students under Level 2."""
    fake = FakeDrive()
    fake.add_folder(ROOT, "Course A", "f-course")
    fake.add_folder(ROOT, "Other Course", "f-other")
    fake.add_folder("f-course", "Centre X", "f-centre")
    fake.add_folder("f-centre", "Batch 1", "f-batch")
    fake.add_folder("f-batch", "Level 2", "f-level")
    fake.add_folder("f-level", "Alice", "f-alice")
    fake.add_folder("f-level", "Bob", "f-bob")
    fake.add_folder("f-level", "Carol", "f-carol")
    return fake
