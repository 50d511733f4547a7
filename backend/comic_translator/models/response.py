"""API request and response models"""
from pydantic import BaseModel, Field
from typing import Dict, List, Optional

from .analysis import AnalysisResult
from .session import PageStatus, ResultReference


class StrictRequest(BaseModel):
    """Request bodies reject fields they do not declare"""

    class Config:
        extra = "forbid"


class UploadResponse(BaseModel):
    """Response for image upload"""
    message: str
    filename: str
    hash: str
    original_name: str
    size: int
    reused: bool = False
    width: Optional[int] = None
    height: Optional[int] = None


class StoredContent(BaseModel):
    """Outcome of a content-addressed write"""
    digest: str
    stored_name: str
    original_name: str
    size: int
    already_existed: bool = False


class AnalyzeRequest(StrictRequest):
    """Request to analyze a stored page within a session"""
    filename: str = Field(..., min_length=1)
    session_id: str = Field(..., min_length=1)
    hash: Optional[str] = None
    provider: Optional[str] = None
    model: Optional[str] = None
    api_key: Optional[str] = None
    temperature: Optional[float] = Field(None, ge=0.0, le=2.0)
    page_id: Optional[str] = None
    add_to_session: bool = False
    original_name: Optional[str] = None


class AnalyzeOutcome(BaseModel):
    """Analysis result plus whether it came from the cache"""
    result: AnalysisResult
    cached: bool = False
    content_digest: str
    session_id: str


class ConnectionTestRequest(StrictRequest):
    """Credentials check against one provider"""
    provider: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    api_key: str = Field(..., min_length=1)


class ConnectionTestResult(BaseModel):
    """Outcome of a provider reachability check"""
    success: bool
    provider: str
    model: str
    status_code: Optional[int] = None
    message: str


class CreateSessionRequest(StrictRequest):
    """Create a named session"""
    name: str
    description: str = ""
    language: Optional[str] = None


class UpdateSessionRequest(StrictRequest):
    """Partial update of session fields"""
    name: Optional[str] = None
    description: Optional[str] = None
    language: Optional[str] = None


class NewPage(StrictRequest):
    """Page data supplied when adding a page to a session"""
    content_digest: str = Field(..., min_length=1)
    stored_filename: str = Field(..., min_length=1)
    original_name: str = ""
    order: Optional[int] = None
    status: PageStatus = PageStatus.PENDING
    result: Optional[ResultReference] = None


class UpdatePageRequest(StrictRequest):
    """Partial update of a page"""
    original_name: Optional[str] = None
    order: Optional[int] = None
    status: Optional[PageStatus] = None
    result: Optional[ResultReference] = None


class PageOrder(StrictRequest):
    """New display position for one page"""
    page_id: str
    order: int


class ReorderRequest(StrictRequest):
    """Batch of page positions"""
    page_orders: List[PageOrder]


class ExportRequest(StrictRequest):
    """Export a session to a document format"""
    format: str = "json"


class ExportResult(BaseModel):
    """Rendered export document"""
    filename: str
    content: str
    size: int
    path: Optional[str] = None


class DeleteSessionResponse(BaseModel):
    """Confirmation of a session deletion"""
    deleted_session_id: str
    message: str = "Session deleted successfully. Files preserved for potential reuse."


class AreaStats(BaseModel):
    """File count and total bytes for one storage area"""
    files: int = 0
    size: int = 0
    size_formatted: str = "0 Bytes"


class StorageStats(BaseModel):
    """Aggregate usage across storage areas"""
    uploads: AreaStats
    results: AreaStats
    sessions: AreaStats
    exports: AreaStats
    total: AreaStats


class OrphanReport(BaseModel):
    """Stored records no session references"""
    orphaned_uploads: List[str] = Field(default_factory=list)
    orphaned_results: List[str] = Field(default_factory=list)


class CleanupResult(BaseModel):
    """Counts of removed records"""
    message: str = "Cleanup completed"
    cleaned: Dict[str, int] = Field(default_factory=lambda: {"uploads": 0, "results": 0})
