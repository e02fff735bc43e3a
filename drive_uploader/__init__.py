"""
drive_uploader - Upload broker between browser clients and Google Drive.

Follows SOLID principles:
- Single Responsibility: Each use case handles one step (resolve, open, duplicate)
- Dependency Injection: Provider clients injected into the coordinator
- Interface Segregation: Small protocols for token, storage and lookup

Usage:
    from drive_uploader import UploadCoordinator, SymbolicPath, IndividualUploadRequest

    coordinator = UploadCoordinator(root_folder_id, token_source, drive)

    # Individual upload: resolve course/centre/batch/level/student, open a session
    path = SymbolicPath("Course", "Centre", "Batch", "Level 1", "Alice")
    session = await coordinator.create_upload_session(
        IndividualUploadRequest(filename="essay.mp4", path=path)
    )

    # Group upload: respond with start.session, then run start.job in background
    start = await coordinator.create_group_upload_session(group_request)
"""
__version__ = "0.3.0"

from .errors import (
    UploaderError,
    ValidationError,
    NotFoundError,
    AmbiguousNameError,
    UpstreamError,
    CredentialExchangeError,
    SessionOpenError,
    ConfigError,
)
from .models import (
    SymbolicPath,
    PathResolution,
    UploadSession,
    DuplicationTarget,
    DuplicationResult,
    DuplicationStatus,
    DuplicationReport,
    ReportStatus,
    FoundFile,
    IndividualUploadRequest,
    GroupUploadRequest,
)
from .orchestrator import UploadCoordinator, GroupDuplicationJob, GroupUploadStart
from .services import OAuthTokenSource, DriveAPIClient, AppsScriptClient

__all__ = [
    # Main
    "UploadCoordinator",
    "GroupDuplicationJob",
    "GroupUploadStart",
    # Models
    "SymbolicPath",
    "PathResolution",
    "UploadSession",
    "DuplicationTarget",
    "DuplicationResult",
    "DuplicationStatus",
    "DuplicationReport",
    "ReportStatus",
    "FoundFile",
    "IndividualUploadRequest",
    "GroupUploadRequest",
    # Errors
    "UploaderError",
    "ValidationError",
    "NotFoundError",
    "AmbiguousNameError",
    "UpstreamError",
    "CredentialExchangeError",
    "SessionOpenError",
    "ConfigError",
    # Services
    "OAuthTokenSource",
    "DriveAPIClient",
    "AppsScriptClient",
]
