"""Service layer for business logic"""
from .content_store import ContentStore
from .result_store import ResultStore
from .session_store import SessionStore
from .response_recovery import parse_llm_response
from .llm_service import AnalysisClient, Provider
from .session_exporter import SessionExporter, ExportFormat
from .comic_pipeline import ComicPipeline
from .storage_inspector import StorageInspector
from .image_processor import inspect_image, detected_mime_type, FORMAT_EXTENSIONS

__all__ = [
    "ContentStore",
    "ResultStore",
    "SessionStore",
    "parse_llm_response",
    "AnalysisClient",
    "Provider",
    "SessionExporter",
    "ExportFormat",
    "ComicPipeline",
    "StorageInspector",
    "inspect_image",
    "detected_mime_type",
    "FORMAT_EXTENSIONS",
]
