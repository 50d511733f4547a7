"""File-backed session storage"""
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional
import logging
import re
import threading

from pydantic import ValidationError as PydanticValidationError

from ..errors import NotFoundError, ValidationError
from ..models.response import NewPage, PageOrder
from ..models.session import Page, Session, SessionMetadata
from ..utils.helpers import utc_now

logger = logging.getLogger(__name__)

_SESSION_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")

SESSION_FIELDS = {"name", "description"}
METADATA_FIELDS = {"language"}
PAGE_FIELDS = {"original_name", "order", "status", "result"}


class SessionStore:
    """
    CRUD over sessions, one self-contained JSON document per session

    Every read-modify-write of a session runs under a lock keyed by the
    session id, so two pages completing at once cannot overwrite each
    other's changes.
    """

    def __init__(self, directory: Path, default_language: str = "en-to-cn"):
        """
        Initialize session store

        Args:
            directory: Folder holding ``<session id>.json`` documents
            default_language: Language tag for sessions created without one
        """
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self.default_language = default_language
        self._locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _locked(self, session_id: str, must_exist: bool = True) -> Iterator[None]:
        # Locks are only registered for sessions that have a document on disk
        path = self._path(session_id)
        if must_exist and not path.is_file():
            raise NotFoundError(f"Session {session_id} not found", key=session_id)
        with self._locks_guard:
            lock = self._locks.setdefault(session_id, threading.RLock())
        with lock:
            yield

    def _path(self, session_id: str) -> Path:
        if not _SESSION_ID_RE.match(session_id or ""):
            raise NotFoundError(f"Session {session_id} not found", key=session_id)
        return self.directory / f"{session_id}.json"

    def _read(self, path: Path) -> Session:
        return Session.model_validate_json(path.read_text(encoding="utf-8"))

    def _write(self, session: Session) -> Session:
        session.updated_at = utc_now()
        path = self._path(session.id)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(session.model_dump_json(indent=2), encoding="utf-8")
        tmp_path.replace(path)
        return session

    def _require(self, session_id: str) -> Session:
        session = self.get(session_id)
        if session is None:
            raise NotFoundError(f"Session {session_id} not found", key=session_id)
        return session

    def create(self, name: str, description: str = "", language: Optional[str] = None) -> Session:
        """
        Create and persist a new session

        Raises:
            ValidationError: when the name is empty after trimming
        """
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValidationError("Session name is required")

        session = Session(
            name=cleaned,
            description=description or "",
            metadata=SessionMetadata(language=language or self.default_language)
        )
        with self._locked(session.id, must_exist=False):
            self._write(session)
        logger.info(f"Created session {session.id} ({cleaned})")
        return session

    def list_sessions(self) -> List[Session]:
        """All readable sessions, most recently updated first"""
        sessions = []
        for path in self.directory.glob("*.json"):
            try:
                sessions.append(self._read(path))
            except (OSError, PydanticValidationError) as e:
                logger.warning(f"Error reading session file {path.name}: {e}")
        sessions.sort(key=lambda session: session.updated_at, reverse=True)
        return sessions

    def get(self, session_id: str) -> Optional[Session]:
        """Session by id, or None when absent or unreadable"""
        try:
            path = self._path(session_id)
        except NotFoundError:
            return None
        if not path.is_file():
            return None
        try:
            return self._read(path)
        except (OSError, PydanticValidationError) as e:
            logger.error(f"Error reading session {session_id}: {e}")
            return None

    def update(self, session_id: str, changes: Dict[str, Any]) -> Session:
        """
        Shallow-merge session fields and refresh ``updated_at``

        Args:
            session_id: Session to update
            changes: Any of ``name``, ``description``, ``language``; None values are ignored

        Raises:
            NotFoundError: when the session does not exist
            ValidationError: on unknown fields or an empty name
        """
        changes = {key: value for key, value in changes.items() if value is not None}
        unknown = set(changes) - SESSION_FIELDS - METADATA_FIELDS
        if unknown:
            raise ValidationError(f"Unknown session fields: {', '.join(sorted(unknown))}")
        if "name" in changes:
            changes["name"] = str(changes["name"]).strip()
            if not changes["name"]:
                raise ValidationError("Session name is required")

        with self._locked(session_id):
            session = self._require(session_id)
            for key, value in changes.items():
                if key in METADATA_FIELDS:
                    setattr(session.metadata, key, value)
                else:
                    setattr(session, key, value)
            return self._write(session)

    def delete(self, session_id: str) -> Session:
        """
        Remove the session document only

        Uploaded content and cached results stay on disk for reuse by
        other sessions.

        Raises:
            NotFoundError: when the session does not exist
        """
        with self._locked(session_id):
            session = self._require(session_id)
            self._path(session_id).unlink()
        with self._locks_guard:
            self._locks.pop(session_id, None)
        logger.info(f"Deleted session {session_id}; files preserved for potential reuse")
        return session

    def add_page(self, session_id: str, page_data: NewPage) -> Session:
        """
        Append a page with a fresh id

        ``order`` defaults to the position after the current last page.

        Raises:
            NotFoundError: when the session does not exist
        """
        with self._locked(session_id):
            session = self._require(session_id)
            page = Page(
                content_digest=page_data.content_digest,
                stored_filename=page_data.stored_filename,
                original_name=page_data.original_name,
                order=page_data.order or len(session.pages) + 1,
                status=page_data.status,
                result=page_data.result
            )
            session.pages.append(page)
            session.recompute_metadata()
            logger.info(f"Added page {page.id} to session {session_id}")
            return self._write(session)

    def update_page(self, session_id: str, page_id: str, changes: Dict[str, Any]) -> Session:
        """
        Merge fields into one page and recompute the page counters

        Args:
            session_id: Owning session
            page_id: Page to update
            changes: Any of ``original_name``, ``order``, ``status``, ``result``

        Raises:
            NotFoundError: when the session or the page does not exist
            ValidationError: on unknown fields or invalid values
        """
        unknown = set(changes) - PAGE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown page fields: {', '.join(sorted(unknown))}")

        with self._locked(session_id):
            session = self._require(session_id)
            index = next((i for i, page in enumerate(session.pages) if page.id == page_id), None)
            if index is None:
                raise NotFoundError(f"Page {page_id} not found in session {session_id}", key=page_id)

            merged = session.pages[index].model_dump()
            merged.update(changes)
            merged["updated_at"] = utc_now()
            try:
                session.pages[index] = Page.model_validate(merged)
            except PydanticValidationError as e:
                raise ValidationError(f"Invalid page update: {e}") from e

            session.recompute_metadata()
            return self._write(session)

    def reorder(self, session_id: str, page_orders: List[PageOrder]) -> Session:
        """
        Apply new page positions and persist pages sorted by them

        Unknown page ids are skipped; orders need not be contiguous.

        Raises:
            NotFoundError: when the session does not exist
        """
        with self._locked(session_id):
            session = self._require(session_id)
            for entry in page_orders:
                page = session.find_page(entry.page_id)
                if page is not None:
                    page.order = entry.order
            session.pages.sort(key=lambda page: page.order)
            return self._write(session)
