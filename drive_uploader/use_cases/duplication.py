"""Fan a single artifact out to several folders with per-target failure isolation."""
from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Dict, Optional, Sequence

from drive_uploader.errors import NotFoundError, UploaderError, describe_exception
from drive_uploader.models import DuplicationReport, DuplicationResult, DuplicationTarget
from drive_uploader.use_cases.folder_resolution import FolderResolver

logger = logging.getLogger(__name__)


def rename_for_student(filename: str, primary_student: str, student: str) -> str:
    """
    Swap the primary student's name for ``student``; unchanged when absent.

    Only whole-name occurrences are replaced: the name must not be preceded or
    followed by a letter or digit, so ``Al`` inside ``Alice`` is left alone.
    """
    if not primary_student:
        return filename
    pattern = re.compile(r"(?<![^\W_])" + re.escape(primary_student) + r"(?![^\W_])")
    return pattern.sub(lambda _: student, filename)


class DuplicationFanout:
    """
    Copy one source artifact into many target folders.

    All targets are in flight together. A failing branch is turned into a
    FAILED result; it never cancels or delays its siblings.
    """

    def __init__(self, drive: Any, resolver: Optional[FolderResolver] = None):
        self._drive = drive
        self._resolver = resolver or FolderResolver(drive)

    async def read_app_properties(self, source_file_id: str) -> Dict[str, str]:
        """Fetch the source's property map, raising NotFoundError if it is gone."""
        metadata = await self._drive.get_file(source_file_id, fields="id,appProperties")
        if metadata is None:
            raise NotFoundError(f"Source file {source_file_id} not found")
        return metadata.get("appProperties") or {}

    async def duplicate(
        self,
        source_file_id: str,
        targets: Sequence[DuplicationTarget],
        app_properties: Optional[Dict[str, str]] = None,
        parent_folder: Optional[str] = None,
    ) -> DuplicationReport:
        """
        Copy ``source_file_id`` into every target.

        Args:
            source_file_id: Artifact to copy
            targets: Destinations; targets without ``folder_id`` are resolved
                by student name under ``parent_folder``
            app_properties: Property map to stamp on copies; read from the
                source once when None
            parent_folder: Level folder used to resolve targets by name

        Returns:
            DuplicationReport with one result per target, in target order
        """
        if app_properties is None:
            app_properties = await self.read_app_properties(source_file_id)

        logger.info("Duplicating %s into %d target(s)", source_file_id, len(targets))
        results = await asyncio.gather(*(
            self._duplicate_one(source_file_id, target, app_properties, parent_folder)
            for target in targets
        ))

        report = DuplicationReport(source_file_id=source_file_id, results=tuple(results))
        logger.info(
            "Duplication of %s finished: %d succeeded, %d failed",
            source_file_id,
            report.succeeded,
            report.failed,
        )
        return report

    async def _duplicate_one(
        self,
        source_file_id: str,
        target: DuplicationTarget,
        app_properties: Dict[str, str],
        parent_folder: Optional[str],
    ) -> DuplicationResult:
        try:
            folder_id = target.folder_id
            if not folder_id:
                folder_id = await self._resolver.resolve_child(target.student, parent_folder)
                if not folder_id:
                    raise NotFoundError(
                        f"Folder for student '{target.student}' not found",
                        level="student",
                        name=target.student,
                    )

            new_file_id = await self._drive.copy_file(
                source_file_id,
                target.new_filename,
                folder_id,
                app_properties=dict(app_properties) if app_properties else None,
            )
        except UploaderError as exc:
            logger.warning("Failed to copy file for student %s: %s", target.student, exc.message)
            return DuplicationResult.fail(target.student, exc.message)
        except Exception as exc:
            error_msg = describe_exception(exc)
            logger.error("Failed to copy file for student %s: %s", target.student, error_msg, exc_info=True)
            return DuplicationResult.fail(target.student, error_msg)

        logger.debug("Copied %s for %s as %s", source_file_id, target.student, new_file_id)
        return DuplicationResult.ok(target.student, new_file_id)
