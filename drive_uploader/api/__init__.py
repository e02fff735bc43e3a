"""HTTP surface for the upload broker."""
from .app import build_coordinator, create_app

__all__ = ["build_coordinator", "create_app"]
