"""Session and page management endpoints"""
from fastapi import APIRouter, HTTPException, Depends
from typing import List
import logging

from ...errors import ComicTranslatorError, NotFoundError
from ...models.response import (
    CreateSessionRequest,
    UpdateSessionRequest,
    NewPage,
    UpdatePageRequest,
    ReorderRequest,
    ExportRequest,
    ExportResult,
    DeleteSessionResponse,
)
from ...models.session import Session
from ...services import SessionStore, SessionExporter
from ..dependencies import get_session_store, get_session_exporter

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post("", response_model=Session)
async def create_session(
    request: CreateSessionRequest,
    session_store: SessionStore = Depends(get_session_store)
):
    """Create a new session (one comic book)"""
    try:
        return session_store.create(request.name, request.description, request.language)
    except ComicTranslatorError:
        raise
    except Exception as e:
        logger.error(f"Create session error: {e}")
        raise HTTPException(status_code=500, detail="Failed to create session")


@router.get("", response_model=List[Session])
async def list_sessions(session_store: SessionStore = Depends(get_session_store)):
    """All sessions, most recently updated first"""
    try:
        return session_store.list_sessions()
    except Exception as e:
        logger.error(f"List sessions error: {e}")
        raise HTTPException(status_code=500, detail="Failed to list sessions")


@router.get("/{session_id}", response_model=Session)
async def get_session(
    session_id: str,
    session_store: SessionStore = Depends(get_session_store)
):
    session = session_store.get(session_id)
    if session is None:
        raise NotFoundError("Session not found", key=session_id)
    return session


@router.put("/{session_id}", response_model=Session)
async def update_session(
    session_id: str,
    request: UpdateSessionRequest,
    session_store: SessionStore = Depends(get_session_store)
):
    """Update name, description or language"""
    try:
        return session_store.update(session_id, request.model_dump(exclude_none=True))
    except ComicTranslatorError:
        raise
    except Exception as e:
        logger.error(f"Update session error: {e}")
        raise HTTPException(status_code=500, detail="Failed to update session")


@router.delete("/{session_id}", response_model=DeleteSessionResponse)
async def delete_session(
    session_id: str,
    session_store: SessionStore = Depends(get_session_store)
):
    """Delete a session; uploaded files and results are kept"""
    try:
        session = session_store.delete(session_id)
        return DeleteSessionResponse(deleted_session_id=session.id)
    except ComicTranslatorError:
        raise
    except Exception as e:
        logger.error(f"Delete session error: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete session")


@router.post("/{session_id}/pages", response_model=Session)
async def add_page(
    session_id: str,
    page: NewPage,
    session_store: SessionStore = Depends(get_session_store)
):
    """Append a stored page to a session"""
    try:
        return session_store.add_page(session_id, page)
    except ComicTranslatorError:
        raise
    except Exception as e:
        logger.error(f"Add page error: {e}")
        raise HTTPException(status_code=500, detail="Failed to add page to session")


@router.put("/{session_id}/pages/{page_id}", response_model=Session)
async def update_page(
    session_id: str,
    page_id: str,
    request: UpdatePageRequest,
    session_store: SessionStore = Depends(get_session_store)
):
    """Update status, result, name or order of one page"""
    try:
        return session_store.update_page(session_id, page_id, request.model_dump(exclude_none=True))
    except ComicTranslatorError:
        raise
    except Exception as e:
        logger.error(f"Update page error: {e}")
        raise HTTPException(status_code=500, detail="Failed to update page")


@router.put("/{session_id}/reorder", response_model=Session)
async def reorder_pages(
    session_id: str,
    request: ReorderRequest,
    session_store: SessionStore = Depends(get_session_store)
):
    """Apply new page positions"""
    try:
        return session_store.reorder(session_id, request.page_orders)
    except ComicTranslatorError:
        raise
    except Exception as e:
        logger.error(f"Reorder pages error: {e}")
        raise HTTPException(status_code=500, detail="Failed to reorder pages")


@router.post("/{session_id}/export", response_model=ExportResult)
async def export_session(
    session_id: str,
    request: ExportRequest,
    exporter: SessionExporter = Depends(get_session_exporter)
):
    """Render the session as json, text or markdown"""
    try:
        return exporter.export(session_id, request.format)
    except ComicTranslatorError:
        raise
    except Exception as e:
        logger.error(f"Export session error: {e}")
        raise HTTPException(status_code=500, detail="Failed to export session")
