"""Orchestrator package - coordinates upload broker workflows."""
from .core import UploadCoordinator
from .group_job import GroupDuplicationJob
from .models import GroupUploadStart

__all__ = ["UploadCoordinator", "GroupDuplicationJob", "GroupUploadStart"]
