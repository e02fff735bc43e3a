"""Orchestrator data models."""
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from ..models import UploadSession

if TYPE_CHECKING:
    from .group_job import GroupDuplicationJob


@dataclass
class GroupUploadStart:
    """Synchronous half of a group upload: the session plus the deferred fanout."""
    session: UploadSession
    job: Optional["GroupDuplicationJob"] = None

    @property
    def has_duplicates(self) -> bool:
        return self.job is not None
