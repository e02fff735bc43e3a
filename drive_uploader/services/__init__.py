"""Provider adapters for drive_uploader."""
from .token_source import OAuthTokenSource
from .drive_client import DriveAPIClient
from .folder_lookup import AppsScriptClient

__all__ = [
    "OAuthTokenSource",
    "DriveAPIClient",
    "AppsScriptClient",
]
