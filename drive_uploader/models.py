"""
Models for drive_uploader.

Immutable dataclasses following Single Responsibility Principle.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Tuple, ClassVar

from .errors import NotFoundError


def folder_key(name: str) -> str:
    """Comparison key for folder names; Drive folders are matched ignoring case."""
    return name.lower()


@dataclass(frozen=True)
class SymbolicPath:
    """Ordered human-readable folder names, resolved top-down."""
    course: str
    centre: str
    batch: str
    level: str
    student: str

    LEVELS: ClassVar[Tuple[str, ...]] = ("course", "centre", "batch", "level", "student")

    @property
    def names(self) -> Tuple[str, ...]:
        return (self.course, self.centre, self.batch, self.level, self.student)

    @property
    def labelled(self) -> List[Tuple[str, str]]:
        """(level label, name) pairs in resolution order."""
        return list(zip(self.LEVELS, self.names))

@dataclass(frozen=True)
class PathResolution:
    """
    Outcome of walking a symbolic path.

    ``folders`` holds the handle resolved at each level, in order. When a level
    fails, ``failed_level``/``failed_name`` name it and ``folders`` stops short.
    """
    folders: Tuple[str, ...] = ()
    failed_level: Optional[str] = None
    failed_name: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.failed_level is None

    @property
    def folder_id(self) -> Optional[str]:
        if not self.found or not self.folders:
            return None
        return self.folders[-1]

    def parent_of_leaf(self) -> Optional[str]:
        """Handle one level above the leaf (the level folder for a student path)."""
        if not self.found or len(self.folders) < 2:
            return None
        return self.folders[-2]

    def raise_for_missing(self) -> str:
        """Return the leaf handle or raise NotFoundError naming the failed level."""
        if not self.found:
            raise NotFoundError(
                f"Folder for {self.failed_level} '{self.failed_name}' not found",
                level=self.failed_level,
                name=self.failed_name,
            )
        return self.folders[-1]


@dataclass(frozen=True)
class UploadSession:
    """Resumable upload channel handed back to the browser."""
    upload_url: str
    access_token: str
    file_id: Optional[str] = None


@dataclass(frozen=True)
class DuplicationTarget:
    """One destination of a fanout. ``folder_id`` None means resolve by student name."""
    student: str
    new_filename: str
    folder_id: Optional[str] = None


class DuplicationStatus(Enum):
    """Per-target duplication status."""
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"  # Folder missing in background group flow


@dataclass(frozen=True)
class DuplicationResult:
    """Immutable result of copying the source into one target folder."""
    student: str
    status: DuplicationStatus
    new_file_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status == DuplicationStatus.SUCCESS

    @classmethod
    def ok(cls, student: str, new_file_id: str):
        return cls(student=student, status=DuplicationStatus.SUCCESS, new_file_id=new_file_id)

    @classmethod
    def fail(cls, student: str, error: str):
        return cls(student=student, status=DuplicationStatus.FAILED, error=error)

    @classmethod
    def skipped(cls, student: str, reason: str):
        return cls(student=student, status=DuplicationStatus.SKIPPED, error=reason)


class ReportStatus(Enum):
    """Aggregate status of a fanout."""
    COMPLETED = "completed"
    PARTIAL_FAILURE = "partial_failure"
    FAILED = "failed"


@dataclass(frozen=True)
class DuplicationReport:
    """All per-target results of one fanout, in target order."""
    source_file_id: str
    results: Tuple[DuplicationResult, ...] = field(default_factory=tuple)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.status == DuplicationStatus.FAILED)

    @property
    def status(self) -> ReportStatus:
        if self.failed == 0:
            return ReportStatus.COMPLETED
        if self.succeeded == 0:
            return ReportStatus.FAILED
        return ReportStatus.PARTIAL_FAILURE


@dataclass(frozen=True)
class FoundFile:
    """A file located by conventional name search."""
    file_id: str
    web_view_link: Optional[str] = None


@dataclass(frozen=True)
class IndividualUploadRequest:
    """Single-student upload. Either ``path`` or ``folder_id`` locates the folder."""
    filename: str
    path: Optional[SymbolicPath] = None
    folder_id: Optional[str] = None
    mime_type: Optional[str] = None
    uploader_id: Optional[str] = None


@dataclass(frozen=True)
class GroupUploadRequest:
    """Group upload: the upload lands in ``path.student``, copies to the others."""
    filename: str
    path: SymbolicPath
    selected_students: Tuple[str, ...]
    mime_type: Optional[str] = None

    @property
    def additional_students(self) -> List[str]:
        """
        Selected students minus the primary, de-duplicated, order kept.

        Names are compared with ``folder_key`` so two spellings that resolve to
        the same folder get a single copy, and none lands in the primary's folder.
        """
        seen = {folder_key(self.path.student or "")}
        others = []
        for student in self.selected_students:
            if not student or folder_key(student) in seen:
                continue
            seen.add(folder_key(student))
            others.append(student)
        return others
