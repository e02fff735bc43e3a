"""Tests for duplication fanout."""
import asyncio
from unittest.mock import AsyncMock

import pytest

from drive_uploader.errors import NotFoundError
from drive_uploader.models import DuplicationStatus, DuplicationTarget, ReportStatus
from drive_uploader.use_cases.duplication import DuplicationFanout, rename_for_student


class TestRenameForStudent:
    def test_replaces_primary_name(self):
        assert rename_for_student("essay_Alice_L2.mp4", "Alice", "Bob") == "essay_Bob_L2.mp4"

    def test_keeps_filename_without_primary_name(self):
        assert rename_for_student("group_project.mp4", "Alice", "Bob") == "group_project.mp4"

    def test_match_is_case_sensitive(self):
        assert rename_for_student("alice.mp4", "Alice", "Bob") == "alice.mp4"

    def test_only_whole_names_are_replaced(self):
        assert rename_for_student("Alice_Al.mp4", "Al", "Bob") == "Alice_Bob.mp4"
        assert rename_for_student("Al-Al 2.mp4", "Al", "Bob") == "Bob-Bob 2.mp4"

    def test_name_inside_a_word_is_kept(self):
        assert rename_for_student("Alfred.mp4", "Al", "Bob") == "Alfred.mp4"


class TestDuplicationFanout:
    @pytest.mark.asyncio
    async def test_copies_into_every_target(self, drive):
        drive.add_file("src-1", {"uploader": "Alice"})
        fanout = DuplicationFanout(drive)
        targets = [
            DuplicationTarget("Bob", "essay_Bob.mp4", folder_id="f-bob"),
            DuplicationTarget("Carol", "essay_Carol.mp4", folder_id="f-carol"),
        ]

        report = await fanout.duplicate("src-1", targets)

        assert report.status == ReportStatus.COMPLETED
        assert [r.student for r in report.results] == ["Bob", "Carol"]
        assert all(r.success for r in report.results)
        assert report.results[0].new_file_id == "copy-of-src-1-in-f-bob"
        assert drive.files["copy-of-src-1-in-f-carol"]["name"] == "essay_Carol.mp4"

    @pytest.mark.asyncio
    async def test_properties_are_copied_verbatim(self, drive):
        source_props = {"uploader": "Alice", "course": "Course A"}
        drive.add_file("src-1", source_props)
        fanout = DuplicationFanout(drive)

        await fanout.duplicate("src-1", [DuplicationTarget("Bob", "x.mp4", folder_id="f-bob")])

        copied = drive.files["copy-of-src-1-in-f-bob"]["appProperties"]
        assert copied == source_props
        assert copied is not source_props

    @pytest.mark.asyncio
    async def test_explicit_properties_skip_source_read(self, drive):
        fanout = DuplicationFanout(drive)

        await fanout.duplicate(
            "src-1",
            [DuplicationTarget("Bob", "x.mp4", folder_id="f-bob")],
            app_properties={"uploader": "Alice"},
        )

        assert "get" not in drive.event_names()
        assert drive.files["copy-of-src-1-in-f-bob"]["appProperties"] == {"uploader": "Alice"}

    @pytest.mark.asyncio
    async def test_missing_source_fails_whole_fanout(self, drive):
        fanout = DuplicationFanout(drive)
        with pytest.raises(NotFoundError, match="Source file gone not found"):
            await fanout.duplicate("gone", [DuplicationTarget("Bob", "x.mp4", folder_id="f-bob")])
        assert "copy_start" not in drive.event_names()

    @pytest.mark.asyncio
    async def test_one_missing_folder_does_not_affect_others(self, drive):
        drive.add_file("src-1", {"uploader": "Alice"})
        fanout = DuplicationFanout(drive)
        targets = [
            DuplicationTarget("Bob", "b.mp4"),
            DuplicationTarget("Zed", "z.mp4"),
            DuplicationTarget("Carol", "c.mp4"),
        ]

        report = await fanout.duplicate("src-1", targets, parent_folder="f-level")

        assert len(report.results) == 3
        assert [r.status for r in report.results] == [
            DuplicationStatus.SUCCESS,
            DuplicationStatus.FAILED,
            DuplicationStatus.SUCCESS,
        ]
        assert report.results[1].error == "Folder for student 'Zed' not found"
        assert report.results[0].new_file_id == "copy-of-src-1-in-f-bob"
        assert report.results[2].new_file_id == "copy-of-src-1-in-f-carol"
        assert report.status == ReportStatus.PARTIAL_FAILURE

    @pytest.mark.asyncio
    async def test_copy_error_is_isolated(self, drive):
        drive.add_file("src-1", {})
        drive.failing_folders.add("f-bob")
        fanout = DuplicationFanout(drive)
        targets = [
            DuplicationTarget("Bob", "b.mp4", folder_id="f-bob"),
            DuplicationTarget("Carol", "c.mp4", folder_id="f-carol"),
        ]

        report = await fanout.duplicate("src-1", targets)

        assert report.results[0].status == DuplicationStatus.FAILED
        assert "403" in report.results[0].error
        assert report.results[1].success
        assert report.succeeded == 1
        assert report.failed == 1

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_captured(self):
        drive = AsyncMock()
        drive.copy_file.side_effect = [RuntimeError("boom"), "new-2"]
        fanout = DuplicationFanout(drive)
        targets = [
            DuplicationTarget("Bob", "b.mp4", folder_id="f-bob"),
            DuplicationTarget("Carol", "c.mp4", folder_id="f-carol"),
        ]

        report = await fanout.duplicate("src-1", targets, app_properties={})

        assert report.results[0].error == "boom"
        assert report.results[1].new_file_id == "new-2"

    @pytest.mark.asyncio
    async def test_all_failed(self, drive):
        drive.add_file("src-1", {})
        drive.failing_folders.update({"f-bob", "f-carol"})
        fanout = DuplicationFanout(drive)
        targets = [
            DuplicationTarget("Bob", "b.mp4", folder_id="f-bob"),
            DuplicationTarget("Carol", "c.mp4", folder_id="f-carol"),
        ]

        report = await fanout.duplicate("src-1", targets)

        assert report.status == ReportStatus.FAILED

    @pytest.mark.asyncio
    async def test_targets_are_in_flight_concurrently(self, drive):
        drive.add_file("src-1", {})
        drive.copy_delay = 0.05
        fanout = DuplicationFanout(drive)
        targets = [
            DuplicationTarget(name, f"{name}.mp4", folder_id=f"f-{name.lower()}")
            for name in ("Bob", "Carol", "Alice")
        ]

        report = await asyncio.wait_for(fanout.duplicate("src-1", targets), timeout=1)

        # Every copy starts before the first one finishes
        names = drive.event_names()
        assert names.index("copy") > max(i for i, n in enumerate(names) if n == "copy_start")
        assert report.succeeded == 3

    @pytest.mark.asyncio
    async def test_no_targets(self, drive):
        drive.add_file("src-1", {})
        report = await DuplicationFanout(drive).duplicate("src-1", [])
        assert report.results == ()
        assert report.status == ReportStatus.COMPLETED
