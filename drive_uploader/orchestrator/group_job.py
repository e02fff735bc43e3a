"""Background half of a group upload: wait for the artifact, then fan it out."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from ..errors import UploaderError, describe_exception
from ..models import DuplicationReport, DuplicationResult, DuplicationTarget
from ..use_cases.duplication import DuplicationFanout, rename_for_student
from ..use_cases.folder_resolution import FolderResolver

logger = logging.getLogger(__name__)


class GroupDuplicationJob:
    """
    Detached duplication for one group upload.

    Runs after the caller already has its session, so its outcome is only
    visible through logging. ``run`` never raises.
    """

    def __init__(
        self,
        drive: Any,
        resolver: FolderResolver,
        fanout: DuplicationFanout,
        source_file_id: str,
        level_folder_id: str,
        primary_student: str,
        filename: str,
        students: Sequence[str],
        wait_timeout: float = 600.0,
        poll_interval: float = 5.0,
    ):
        self._drive = drive
        self._resolver = resolver
        self._fanout = fanout
        self.source_file_id = source_file_id
        self.level_folder_id = level_folder_id
        self.primary_student = primary_student
        self.filename = filename
        self.students = list(students)
        self._wait_timeout = wait_timeout
        self._poll_interval = poll_interval

    async def run(self) -> Optional[DuplicationReport]:
        """Execute the fanout and log its report."""
        try:
            report = await self._run()
        except Exception as exc:
            logger.error(
                "Group duplication of %s aborted: %s",
                self.source_file_id,
                describe_exception(exc),
                exc_info=True,
            )
            return None

        for result in report.results:
            if not result.success:
                logger.warning(
                    "Group duplication %s for %s: %s",
                    result.status.value,
                    result.student,
                    result.error,
                )
        logger.info(
            "Group duplication of %s finished with status %s (%d/%d copied)",
            self.source_file_id,
            report.status.value,
            report.succeeded,
            len(report.results),
        )
        return report

    async def _run(self) -> DuplicationReport:
        app_properties = await self.wait_for_artifact()
        if app_properties is None:
            error = (
                f"Source file {self.source_file_id} did not appear "
                f"within {self._wait_timeout:g}s"
            )
            return DuplicationReport(
                source_file_id=self.source_file_id,
                results=tuple(DuplicationResult.fail(s, error) for s in self.students),
            )

        resolved = await asyncio.gather(*(self._resolve_student(s) for s in self.students))

        targets: List[DuplicationTarget] = []
        early: Dict[str, DuplicationResult] = {}
        for student, outcome in zip(self.students, resolved):
            if isinstance(outcome, DuplicationResult):
                early[student] = outcome
                continue
            targets.append(DuplicationTarget(
                student=student,
                new_filename=rename_for_student(self.filename, self.primary_student, student),
                folder_id=outcome,
            ))

        copied: Dict[str, DuplicationResult] = {}
        if targets:
            report = await self._fanout.duplicate(
                self.source_file_id, targets, app_properties=app_properties
            )
            copied = {r.student: r for r in report.results}

        return DuplicationReport(
            source_file_id=self.source_file_id,
            results=tuple(early.get(s) or copied[s] for s in self.students),
        )

    async def _resolve_student(self, student: str):
        """Folder handle for ``student``, or a SKIPPED/FAILED result."""
        try:
            folder_id = await self._resolver.resolve_child(student, self.level_folder_id)
        except UploaderError as exc:
            return DuplicationResult.fail(student, exc.message)
        except Exception as exc:
            return DuplicationResult.fail(student, describe_exception(exc))
        if not folder_id:
            logger.warning("Folder for student %s not found, skipping duplicate", student)
            return DuplicationResult.skipped(student, f"Folder for student '{student}' not found")
        return folder_id

    async def wait_for_artifact(self) -> Optional[Dict[str, str]]:
        """
        Poll until the uploaded artifact exists.

        The browser is still transferring bytes when this job starts. Returns
        the artifact's property map, or None when it never shows up.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._wait_timeout
        while True:
            metadata = await self._drive.get_file(self.source_file_id, fields="id,appProperties")
            if metadata is not None:
                return metadata.get("appProperties") or {}
            if loop.time() >= deadline:
                return None
            logger.debug("Waiting for %s to finish uploading", self.source_file_id)
            await asyncio.sleep(self._poll_interval)
