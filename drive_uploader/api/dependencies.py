"""
drive_uploader/api/dependencies.py

Shared FastAPI dependencies.
"""
from __future__ import annotations

from fastapi import Request

from ..orchestrator import UploadCoordinator


def get_coordinator(request: Request) -> UploadCoordinator:
    """
    Return the process-wide coordinator built at startup.
    """

    coordinator = getattr(request.app.state, "coordinator", None)
    if coordinator is None:
        raise RuntimeError("Coordinator is not initialised; the app lifespan has not run.")
    return coordinator
