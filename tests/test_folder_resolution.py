"""Tests for symbolic path resolution."""
import pytest

from drive_uploader.errors import AmbiguousNameError, NotFoundError
from drive_uploader.models import SymbolicPath
from drive_uploader.use_cases.folder_resolution import FolderResolver


def _path(student="Alice", **overrides):
    values = dict(course="Course A", centre="Centre X", batch="Batch 1", level="Level 2", student=student)
    values.update(overrides)
    return SymbolicPath(**values)


class TestResolveChild:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["Alice", "alice", "ALICE", "aLiCe"])
    async def test_match_is_case_insensitive(self, drive, name):
        resolver = FolderResolver(drive)
        assert await resolver.resolve_child(name, "f-level") == "f-alice"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["Alic", "Alice ", "Alicia", "lice"])
    async def test_no_partial_match(self, drive, name):
        resolver = FolderResolver(drive)
        assert await resolver.resolve_child(name, "f-level") is None

    @pytest.mark.asyncio
    async def test_single_listing_call(self, drive):
        resolver = FolderResolver(drive)
        await resolver.resolve_child("Carol", "f-level")
        assert drive.events == [("list", "f-level")]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name,parent", [("Alice", None), ("Alice", ""), ("", "f-level"), (None, "f-level")])
    async def test_empty_inputs_are_not_found_without_listing(self, drive, name, parent):
        resolver = FolderResolver(drive)
        assert await resolver.resolve_child(name, parent) is None
        assert drive.events == []

    @pytest.mark.asyncio
    async def test_empty_listing(self, drive):
        resolver = FolderResolver(drive)
        assert await resolver.resolve_child("Anything", "f-alice") is None

    @pytest.mark.asyncio
    async def test_case_collision_is_ambiguous(self, drive):
        drive.add_folder("f-level", "ALICE", "f-alice-dup")
        resolver = FolderResolver(drive)
        with pytest.raises(AmbiguousNameError) as exc_info:
            await resolver.resolve_child("alice", "f-level")
        assert exc_info.value.candidates == ["f-alice", "f-alice-dup"]
        assert exc_info.value.status_code == 409


class TestResolvePath:
    @pytest.mark.asyncio
    async def test_full_path(self, drive, root):
        resolution = await FolderResolver(drive).resolve_path(_path(), root)
        assert resolution.found
        assert resolution.folder_id == "f-alice"
        assert resolution.folders == ("f-course", "f-centre", "f-batch", "f-level", "f-alice")
        assert resolution.parent_of_leaf() == "f-level"

    @pytest.mark.asyncio
    async def test_same_result_as_stepwise_resolution(self, drive, root):
        resolver = FolderResolver(drive)
        path = _path(student="bob")

        current = root
        for name in path.names:
            current = await resolver.resolve_child(name, current)

        resolution = await resolver.resolve_path(path, root)
        assert resolution.folder_id == current == "f-bob"

    @pytest.mark.asyncio
    async def test_reordered_path_fails(self, drive, root):
        resolver = FolderResolver(drive)
        swapped = SymbolicPath("Centre X", "Course A", "Batch 1", "Level 2", "Alice")
        resolution = await resolver.resolve_path(swapped, root)
        assert not resolution.found
        assert resolution.failed_level == "course"
        assert resolution.failed_name == "Centre X"

    @pytest.mark.asyncio
    async def test_stops_at_first_missing_level(self, drive, root):
        # "Batch 9" is missing, even though a "Level 2" exists deeper in the tree
        resolver = FolderResolver(drive)
        resolution = await resolver.resolve_path(_path(batch="Batch 9"), root)

        assert resolution.failed_level == "batch"
        assert resolution.failed_name == "Batch 9"
        assert resolution.folders == ("f-course", "f-centre")
        assert resolution.folder_id is None
        listed = [e[1] for e in drive.events if e[0] == "list"]
        assert listed == [root, "f-course", "f-centre"]

    @pytest.mark.asyncio
    async def test_raise_for_missing_names_level(self, drive, root):
        resolution = await FolderResolver(drive).resolve_path(_path(student="Zed"), root)
        with pytest.raises(NotFoundError, match="Folder for student 'Zed' not found") as exc_info:
            resolution.raise_for_missing()
        assert exc_info.value.level == "student"
        assert exc_info.value.name == "Zed"

    @pytest.mark.asyncio
    async def test_no_caching_between_calls(self, drive, root):
        resolver = FolderResolver(drive)
        assert not (await resolver.resolve_path(_path(student="Dan"), root)).found

        drive.add_folder("f-level", "Dan", "f-dan")
        resolution = await resolver.resolve_path(_path(student="Dan"), root)
        assert resolution.folder_id == "f-dan"
