"""Session and page data models"""
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field
from typing import List, Optional

from ..utils.helpers import utc_now, generate_page_id, generate_session_id


class PageStatus(str, Enum):
    """Processing state of a page"""
    PENDING = "pending"
    UPLOADING = "uploading"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class ResultReference(BaseModel):
    """Identifying info of the analysis result attached to a page"""
    session_id: str
    content_digest: str
    page_number: int = 1
    text_count: int = 0
    processed_at: datetime = Field(default_factory=utc_now)


class Page(BaseModel):
    """One page of a session, referencing stored content by digest"""
    id: str = Field(default_factory=generate_page_id)
    content_digest: str
    stored_filename: str
    original_name: str = ""
    order: int = 1
    added_at: datetime = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = None
    status: PageStatus = PageStatus.PENDING
    result: Optional[ResultReference] = None


class SessionMetadata(BaseModel):
    """Derived page counts plus the translation direction"""
    total_pages: int = 0
    completed_pages: int = 0
    language: str = "en-to-cn"


class Session(BaseModel):
    """A named, ordered collection of pages (one comic book)"""
    id: str = Field(default_factory=generate_session_id)
    name: str = Field(..., min_length=1)
    description: str = ""
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    pages: List[Page] = Field(default_factory=list)
    metadata: SessionMetadata = Field(default_factory=SessionMetadata)

    def find_page(self, page_id: str) -> Optional[Page]:
        for page in self.pages:
            if page.id == page_id:
                return page
        return None

    def recompute_metadata(self) -> None:
        """Refresh the page counters after any page mutation"""
        self.metadata.total_pages = len(self.pages)
        self.metadata.completed_pages = sum(
            1 for page in self.pages if page.status == PageStatus.COMPLETED
        )
