"""API route modules"""
from .uploads import router as uploads_router
from .analysis import router as analysis_router
from .sessions import router as sessions_router
from .storage import router as storage_router

__all__ = ["uploads_router", "analysis_router", "sessions_router", "storage_router"]
