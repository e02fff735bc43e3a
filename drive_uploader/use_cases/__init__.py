"""Application use cases for the upload broker."""

from .folder_resolution import FolderResolver
from .upload_session import UploadSessionOpener
from .duplication import DuplicationFanout, rename_for_student

__all__ = [
    "FolderResolver",
    "UploadSessionOpener",
    "DuplicationFanout",
    "rename_for_student",
]
