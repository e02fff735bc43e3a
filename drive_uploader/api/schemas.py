"""
Request/response schemas for the HTTP surface.

Field names on the wire are camelCase, as the browser client sends them.
Request fields are optional at the schema level so that missing values reach
the coordinator and come back as a 400 with a readable message.
"""
from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models import (
    DuplicationTarget,
    GroupUploadRequest,
    IndividualUploadRequest,
    SymbolicPath,
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class _PathFields(_CamelModel):
    student_name: Optional[str] = Field(default=None, alias="studentName")
    course: Optional[str] = None
    centre: Optional[str] = None
    batch: Optional[str] = None
    level: Optional[str] = None

    def symbolic_path(self) -> Optional[SymbolicPath]:
        parts = (self.course, self.centre, self.batch, self.level, self.student_name)
        if not any(parts):
            return None
        return SymbolicPath(*((p or "").strip() for p in parts))


class UploadSessionRequest(_PathFields):
    filename: Optional[str] = None
    folder_id: Optional[str] = Field(default=None, alias="folderId")
    mime_type: Optional[str] = Field(default=None, alias="mimeType")
    uploader_id: Optional[str] = Field(default=None, alias="uploaderId")

    def to_domain(self) -> IndividualUploadRequest:
        return IndividualUploadRequest(
            filename=(self.filename or "").strip(),
            path=None if self.folder_id else self.symbolic_path(),
            folder_id=self.folder_id,
            mime_type=self.mime_type,
            uploader_id=self.uploader_id,
        )


class GroupUploadSessionRequest(_PathFields):
    filename: Optional[str] = None
    selected_students: Optional[List[str]] = Field(default=None, alias="selectedStudents")
    mime_type: Optional[str] = Field(default=None, alias="mimeType")

    def to_domain(self) -> GroupUploadRequest:
        return GroupUploadRequest(
            filename=(self.filename or "").strip(),
            path=self.symbolic_path() or SymbolicPath("", "", "", "", ""),
            selected_students=tuple(self.selected_students or ()),
            mime_type=self.mime_type,
        )


class UploadSessionResponse(_CamelModel):
    upload_url: str = Field(alias="uploadUrl")
    access_token: str = Field(alias="accessToken")
    file_id: Optional[str] = Field(default=None, alias="fileId")


class RenameEntry(_CamelModel):
    student: Optional[str] = None
    folder_id: Optional[str] = Field(default=None, alias="folderId")
    new_filename: Optional[str] = Field(default=None, alias="newFilename")

    def to_target(self) -> DuplicationTarget:
        return DuplicationTarget(
            student=self.student or "",
            new_filename=self.new_filename or "",
            folder_id=self.folder_id,
        )


class DuplicateFilesRequest(_CamelModel):
    source_file_id: Optional[str] = Field(default=None, alias="sourceFileId")
    rename_data: Optional[List[RenameEntry]] = Field(default=None, alias="renameData")


class DuplicationResultSchema(_CamelModel):
    student: str
    status: str
    new_file_id: Optional[str] = Field(default=None, alias="newFileId")
    error: Optional[str] = None


class DuplicateFilesResponse(_CamelModel):
    status: str
    results: List[DuplicationResultSchema]


class GroupFolderIdsRequest(_CamelModel):
    students: Optional[List[str]] = None
    course: Optional[str] = None
    centre: Optional[str] = None
    batch: Optional[str] = None
    level: Optional[str] = None


class GroupFolderIdsResponse(_CamelModel):
    folder_ids: Dict[str, str] = Field(alias="folderIds")


class FindFileRequest(_CamelModel):
    filename: Optional[str] = None
    course: Optional[str] = None
    centre: Optional[str] = None
    batch: Optional[str] = None
    level: Optional[str] = None
    student: Optional[str] = None
    extension: Optional[str] = None


class FindFileResponse(_CamelModel):
    file_id: str = Field(alias="fileId")
    file_link: Optional[str] = Field(default=None, alias="fileLink")
