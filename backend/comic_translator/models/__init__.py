"""Data models for the application"""
from .analysis import AnalysisResult, AnalysisOptions, TextUnit, Explanation, TextType
from .session import Session, SessionMetadata, Page, PageStatus, ResultReference
from .response import (
    UploadResponse,
    StoredContent,
    AnalyzeRequest,
    AnalyzeOutcome,
    ConnectionTestRequest,
    ConnectionTestResult,
    CreateSessionRequest,
    UpdateSessionRequest,
    NewPage,
    UpdatePageRequest,
    PageOrder,
    ReorderRequest,
    ExportRequest,
    ExportResult,
    DeleteSessionResponse,
    AreaStats,
    StorageStats,
    OrphanReport,
    CleanupResult,
)

__all__ = [
    "AnalysisResult",
    "AnalysisOptions",
    "TextUnit",
    "Explanation",
    "TextType",
    "Session",
    "SessionMetadata",
    "Page",
    "PageStatus",
    "ResultReference",
    "UploadResponse",
    "StoredContent",
    "AnalyzeRequest",
    "AnalyzeOutcome",
    "ConnectionTestRequest",
    "ConnectionTestResult",
    "CreateSessionRequest",
    "UpdateSessionRequest",
    "NewPage",
    "UpdatePageRequest",
    "PageOrder",
    "ReorderRequest",
    "ExportRequest",
    "ExportResult",
    "DeleteSessionResponse",
    "AreaStats",
    "StorageStats",
    "OrphanReport",
    "CleanupResult",
]
