"""
drive_uploader/api/routes.py

Upload broker HTTP endpoints. Errors raised by the coordinator are turned
into ``{"error": ...}`` bodies by the handlers registered in ``app.py``.
"""
from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, BackgroundTasks, Body, Depends
from fastapi.responses import JSONResponse, PlainTextResponse

from ..orchestrator import UploadCoordinator
from .dependencies import get_coordinator
from .schemas import (
    DuplicateFilesRequest,
    DuplicateFilesResponse,
    DuplicationResultSchema,
    FindFileRequest,
    FindFileResponse,
    GroupFolderIdsRequest,
    GroupFolderIdsResponse,
    GroupUploadSessionRequest,
    UploadSessionRequest,
    UploadSessionResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["uploads"])


@router.get("/", response_class=PlainTextResponse)
async def liveness() -> str:
    return "Video Uploader Server is running!"


@router.post(
    "/create-upload-session",
    response_model=UploadSessionResponse,
    response_model_exclude_none=True,
)
async def create_upload_session(
    payload: UploadSessionRequest,
    coordinator: UploadCoordinator = Depends(get_coordinator),
) -> UploadSessionResponse:
    """
    Open a resumable session for one student's upload.
    """
    logger.info("Received a request to create an upload session.")
    session = await coordinator.create_upload_session(payload.to_domain())
    return UploadSessionResponse(
        upload_url=session.upload_url,
        access_token=session.access_token,
        file_id=session.file_id,
    )


@router.post(
    "/create-group-upload-session",
    response_model=UploadSessionResponse,
    response_model_exclude_none=True,
)
async def create_group_upload_session(
    payload: GroupUploadSessionRequest,
    background_tasks: BackgroundTasks,
    coordinator: UploadCoordinator = Depends(get_coordinator),
) -> UploadSessionResponse:
    """
    Open the primary student's session; copies to the others run after the response.
    """
    start = await coordinator.create_group_upload_session(payload.to_domain())
    if start.has_duplicates:
        background_tasks.add_task(start.job.run)
        logger.info(
            "Scheduled duplication of %s to %d student(s)",
            start.session.file_id,
            len(start.job.students),
        )
    return UploadSessionResponse(
        upload_url=start.session.upload_url,
        access_token=start.session.access_token,
        file_id=start.session.file_id,
    )


@router.post("/duplicate-files", response_model=DuplicateFilesResponse, response_model_exclude_none=True)
async def duplicate_files(
    payload: DuplicateFilesRequest,
    coordinator: UploadCoordinator = Depends(get_coordinator),
) -> DuplicateFilesResponse:
    targets = [entry.to_target() for entry in payload.rename_data or []]
    report = await coordinator.duplicate_files(payload.source_file_id or "", targets)
    return DuplicateFilesResponse(
        status=report.status.value,
        results=[
            DuplicationResultSchema(
                student=r.student,
                status=r.status.value,
                new_file_id=r.new_file_id,
                error=r.error,
            )
            for r in report.results
        ],
    )


@router.post("/get-group-folder-ids", response_model=GroupFolderIdsResponse)
async def get_group_folder_ids(
    payload: GroupFolderIdsRequest,
    coordinator: UploadCoordinator = Depends(get_coordinator),
) -> GroupFolderIdsResponse:
    folder_ids = await coordinator.get_group_folder_ids(
        payload.students or [],
        payload.course or "",
        payload.centre or "",
        payload.batch or "",
        payload.level or "",
    )
    return GroupFolderIdsResponse(folder_ids=folder_ids)


@router.post("/find-file-id", response_model=FindFileResponse, response_model_exclude_none=True)
async def find_file_id(
    payload: FindFileRequest,
    coordinator: UploadCoordinator = Depends(get_coordinator),
) -> FindFileResponse:
    found = await coordinator.find_file(
        payload.filename or "",
        payload.student or "",
        payload.level or "",
        payload.centre or "",
        payload.extension or "",
    )
    return FindFileResponse(file_id=found.file_id, file_link=found.web_view_link)


@router.post("/log-upload")
async def log_upload(
    payload: Dict[str, Any] = Body(...),
    coordinator: UploadCoordinator = Depends(get_coordinator),
) -> JSONResponse:
    status_code, body = await coordinator.log_upload(payload)
    return JSONResponse(status_code=status_code, content=body)
