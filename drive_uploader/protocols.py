"""
Protocols (Interfaces) for Dependency Inversion.

Following Interface Segregation Principle - small, focused interfaces.
"""
from typing import Optional, Dict, Any, List, Protocol, runtime_checkable


@runtime_checkable
class ITokenSource(Protocol):
    """Interface for short-lived bearer token exchange."""

    async def get_access_token(self) -> str:
        """Exchange the refresh credential for a currently valid token."""
        ...


@runtime_checkable
class IDriveClient(Protocol):
    """Interface for the storage provider operations the broker uses."""

    async def list_child_folders(self, parent_id: str) -> List[Dict[str, Any]]:
        """List immediate subfolders as ``{"id", "name"}`` dicts."""
        ...

    async def create_resumable_session(
        self,
        folder_id: str,
        filename: str,
        app_properties: Optional[Dict[str, str]] = None,
        mime_type: Optional[str] = None,
        file_id: Optional[str] = None,
        access_token: Optional[str] = None,
    ) -> str:
        """Open a resumable upload session and return its URL."""
        ...

    async def generate_file_id(self) -> str:
        """Reserve an id for a file that does not exist yet."""
        ...

    async def get_file(self, file_id: str, fields: str = "id,name,appProperties") -> Optional[Dict[str, Any]]:
        """Fetch file metadata, or None when the file does not exist."""
        ...

    async def copy_file(
        self,
        file_id: str,
        name: str,
        parent_id: str,
        app_properties: Optional[Dict[str, str]] = None,
    ) -> str:
        """Server-side copy; returns the new file id."""
        ...

    async def find_files(self, name: str) -> List[Dict[str, Any]]:
        """Search non-trashed files by exact name."""
        ...


@runtime_checkable
class IFolderLookup(Protocol):
    """Interface for the external folder-id lookup script."""

    async def get_folder_id(
        self, course: str, centre: str, batch: str, level: str, student: str
    ) -> Optional[str]:
        """Return the student's folder id, or None when the script has none."""
        ...

    async def forward_log(self, payload: Dict[str, Any]) -> Any:
        """Forward an upload log record; returns the script's response."""
        ...
