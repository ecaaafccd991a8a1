"""APIRouter registration for the authoring service."""

from __future__ import annotations

from fastapi import APIRouter

from deployspec.routes.document import router as document_router
from deployspec.routes.export import router as export_router

api_router = APIRouter()
api_router.include_router(document_router, tags=["Document"])
api_router.include_router(export_router, tags=["Export"])

__all__ = ["api_router"]
