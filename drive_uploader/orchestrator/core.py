"""Core orchestrator - coordinates every upload broker workflow."""
import logging
from typing import Any, Dict, List, Optional, Sequence

from ..errors import NotFoundError, UpstreamError, ValidationError
from ..models import (
    DuplicationReport,
    DuplicationTarget,
    FoundFile,
    GroupUploadRequest,
    IndividualUploadRequest,
    SymbolicPath,
    UploadSession,
)
from ..protocols import IDriveClient, IFolderLookup, ITokenSource
from ..use_cases.duplication import DuplicationFanout
from ..use_cases.folder_resolution import FolderResolver
from ..use_cases.upload_session import UploadSessionOpener

from .group_job import GroupDuplicationJob
from .models import GroupUploadStart

logger = logging.getLogger(__name__)


def _missing_path_fields(path: Optional[SymbolicPath]) -> List[str]:
    if path is None:
        return list(SymbolicPath.LEVELS)
    return [label for label, name in path.labelled if not (name or "").strip()]


class UploadCoordinator:
    """
    Orchestrates upload sessions and duplication using injected services.

    One instance is built at process start and shared by every request; it
    holds no per-request state.

    Usage:
        coordinator = UploadCoordinator(root_folder_id, token_source, drive)
        session = await coordinator.create_upload_session(request)

        start = await coordinator.create_group_upload_session(group_request)
        respond(start.session)
        if start.job:
            await start.job.run()   # only after the response is sent
    """

    def __init__(
        self,
        root_folder_id: str,
        token_source: ITokenSource,
        drive: IDriveClient,
        folder_lookup: Optional[IFolderLookup] = None,
        artifact_wait_timeout: float = 600.0,
        artifact_poll_interval: float = 5.0,
        resolver: Optional[FolderResolver] = None,
        session_opener: Optional[UploadSessionOpener] = None,
        fanout: Optional[DuplicationFanout] = None,
    ):
        """
        Initialize coordinator with dependencies.

        Args:
            root_folder_id: Folder under which course folders live
            token_source: Shared refresh-token exchanger
            drive: Storage provider client
            folder_lookup: Optional external folder-id lookup / log sink
            artifact_wait_timeout: Seconds a group job waits for the upload to land
            artifact_poll_interval: Seconds between artifact existence checks
        """
        self._root_folder_id = root_folder_id
        self._tokens = token_source
        self._drive = drive
        self._lookup = folder_lookup
        self._wait_timeout = artifact_wait_timeout
        self._poll_interval = artifact_poll_interval

        self._resolver = resolver or FolderResolver(drive)
        self._opener = session_opener or UploadSessionOpener(token_source, drive)
        self._fanout = fanout or DuplicationFanout(drive, self._resolver)

    async def create_upload_session(self, request: IndividualUploadRequest) -> UploadSession:
        """Individual upload: resolve the student's folder (unless given) and open a session."""
        if not request.filename:
            raise ValidationError("filename is required.")

        if request.folder_id:
            folder_id = request.folder_id
        else:
            missing = _missing_path_fields(request.path)
            if missing:
                raise ValidationError(
                    "filename and either folderId or studentName, course, centre, batch "
                    f"and level are required (missing: {', '.join(missing)})."
                )
            resolution = await self._resolver.resolve_path(request.path, self._root_folder_id)
            folder_id = resolution.raise_for_missing()

        app_properties = {"uploader": request.uploader_id} if request.uploader_id else None
        return await self._opener.open_session(
            folder_id,
            request.filename,
            app_properties=app_properties,
            mime_type=request.mime_type,
        )

    async def create_group_upload_session(self, request: GroupUploadRequest) -> GroupUploadStart:
        """
        Group upload, synchronous half.

        Opens the primary student's session with a reserved file id and an
        ``uploader`` tag. Returns the session together with a job that copies
        the artifact to the other students; no copy is issued here.
        """
        if not request.filename:
            raise ValidationError("filename is required.")
        missing = _missing_path_fields(request.path)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}.")
        if not request.selected_students:
            raise ValidationError("selectedStudents must be a non-empty list.")

        resolution = await self._resolver.resolve_path(request.path, self._root_folder_id)
        folder_id = resolution.raise_for_missing()

        session = await self._opener.open_session(
            folder_id,
            request.filename,
            app_properties={"uploader": request.path.student},
            mime_type=request.mime_type,
            reserve_file_id=True,
        )

        others = request.additional_students
        if not others:
            logger.info("Group upload %s has no students besides the primary", request.filename)
            return GroupUploadStart(session=session)

        job = GroupDuplicationJob(
            drive=self._drive,
            resolver=self._resolver,
            fanout=self._fanout,
            source_file_id=session.file_id,
            level_folder_id=resolution.parent_of_leaf(),
            primary_student=request.path.student,
            filename=request.filename,
            students=others,
            wait_timeout=self._wait_timeout,
            poll_interval=self._poll_interval,
        )
        return GroupUploadStart(session=session, job=job)

    async def duplicate_files(
        self, source_file_id: str, targets: Sequence[DuplicationTarget]
    ) -> DuplicationReport:
        """Synchronous duplication of an existing artifact into explicit folders."""
        if not source_file_id or not targets:
            raise ValidationError("Missing source file ID or rename data.")
        for target in targets:
            if not target.student or not target.folder_id or not target.new_filename:
                raise ValidationError("Each rename entry needs student, folderId and newFilename.")

        return await self._fanout.duplicate(source_file_id, targets)

    async def get_group_folder_ids(
        self,
        students: Sequence[str],
        course: str,
        centre: str,
        batch: str,
        level: str,
    ) -> Dict[str, str]:
        """
        Map student names to folder ids; students without a folder are omitted.

        Uses the external lookup script when configured, otherwise resolves
        through Drive under the shared level folder.
        """
        if not students:
            raise ValidationError("An array of students is required.")

        folder_ids: Dict[str, str] = {}
        if self._lookup is not None:
            for student in students:
                folder_id = await self._lookup.get_folder_id(course, centre, batch, level, student)
                if folder_id:
                    folder_ids[student] = folder_id
                else:
                    logger.warning("Folder ID not found for student: %s", student)
            return folder_ids

        level_path = [("course", course), ("centre", centre), ("batch", batch), ("level", level)]
        resolution = await self._resolver.resolve_names(level_path, self._root_folder_id)
        level_folder = resolution.raise_for_missing()
        for student in students:
            folder_id = await self._resolver.resolve_child(student, level_folder)
            if folder_id:
                folder_ids[student] = folder_id
            else:
                logger.warning("Folder ID not found for student: %s", student)
        return folder_ids

    async def find_file(
        self, filename: str, student: str, level: str, centre: str, extension: str
    ) -> FoundFile:
        """Locate a submission by its conventional ``{file}_{student}_{level}_{centre}.{ext}`` name."""
        if not filename or not student or not extension:
            raise ValidationError("Filename, student, and extension are required.")

        search_name = f"{filename}_{student}_{level}_{centre}.{extension}"
        files = await self._drive.find_files(search_name)
        if not files:
            raise NotFoundError("File not found.")
        return FoundFile(file_id=files[0].get("id"), web_view_link=files[0].get("webViewLink"))

    async def log_upload(self, payload: Dict[str, Any]) -> Any:
        """Relay a client upload log record to the lookup script."""
        if self._lookup is None:
            raise UpstreamError("Upload log sink is not configured.")
        return await self._lookup.forward_log(payload)
