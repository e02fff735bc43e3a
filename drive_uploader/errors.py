"""Error taxonomy for the upload broker. Each error knows its HTTP status."""
from typing import Optional, Sequence


class UploaderError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(UploaderError):
    """Missing or malformed request fields."""

    status_code = 400


class NotFoundError(UploaderError):
    """Path resolution miss or unknown artifact."""

    status_code = 404

    def __init__(self, message: str, level: Optional[str] = None, name: Optional[str] = None):
        super().__init__(message)
        self.level = level
        self.name = name


class AmbiguousNameError(UploaderError):
    """More than one subfolder matches a name case-insensitively."""

    status_code = 409

    def __init__(self, name: str, parent: str, candidates: Sequence[str]):
        super().__init__(
            f"Folder name '{name}' is ambiguous under {parent}: "
            f"{len(candidates)} matches ({', '.join(candidates)})"
        )
        self.name = name
        self.parent = parent
        self.candidates = list(candidates)


class UpstreamError(UploaderError):
    """Storage provider, token endpoint or lookup script failure."""

    status_code = 500


class CredentialExchangeError(UpstreamError):
    """Refresh credential could not be exchanged for an access token."""


class SessionOpenError(UpstreamError):
    """Provider refused or failed to open a resumable upload session."""


class ConfigError(RuntimeError):
    """Startup configuration is missing or invalid."""


def describe_exception(exc: BaseException) -> str:
    message = str(exc).strip()
    if message:
        return message
    return f"{type(exc).__name__}: {repr(exc)}"
