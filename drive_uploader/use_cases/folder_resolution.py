"""Use cases for resolving symbolic paths into Drive folder handles."""
from __future__ import annotations

import logging
from typing import Any, Iterable, Optional, Tuple

from drive_uploader.errors import AmbiguousNameError
from drive_uploader.models import PathResolution, SymbolicPath, folder_key

logger = logging.getLogger(__name__)


class FolderResolver:
    """
    Walk the storage tree one level at a time.

    Matching is case-insensitive exact equality; there is no partial or fuzzy
    match. Nothing is cached between calls because folders may be created or
    renamed between requests.
    """

    def __init__(self, drive: Any):
        self._drive = drive

    async def resolve_child(self, name: Optional[str], parent_id: Optional[str]) -> Optional[str]:
        """
        Resolve ``name`` among the immediate subfolders of ``parent_id``.

        Returns:
            Folder handle, or None when the parent or name is empty or nothing matches

        Raises:
            AmbiguousNameError: more than one subfolder matches
        """
        if not parent_id or not name:
            return None

        children = await self._drive.list_child_folders(parent_id)
        if not children:
            return None

        wanted = folder_key(name)
        matches = [c for c in children if folder_key(c.get("name") or "") == wanted]
        if not matches:
            return None
        if len(matches) > 1:
            raise AmbiguousNameError(name, parent_id, [m.get("id") for m in matches])
        return matches[0].get("id")

    async def resolve_names(
        self, labelled_names: Iterable[Tuple[str, str]], root_id: str
    ) -> PathResolution:
        """Fold ``resolve_child`` over (label, name) pairs starting at ``root_id``."""
        folders = []
        current: Optional[str] = root_id
        for label, name in labelled_names:
            current = await self.resolve_child(name, current)
            if current is None:
                logger.info("Path resolution stopped at %s '%s'", label, name)
                return PathResolution(folders=tuple(folders), failed_level=label, failed_name=name)
            folders.append(current)
        return PathResolution(folders=tuple(folders))

    async def resolve_path(self, path: SymbolicPath, root_id: str) -> PathResolution:
        """Resolve the full course/centre/batch/level/student path under ``root_id``."""
        return await self.resolve_names(path.labelled, root_id)
