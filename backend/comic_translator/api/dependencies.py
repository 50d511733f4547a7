"""Dependency injection for API routes"""
from pathlib import Path
from ..config import settings
from ..services import (
    ContentStore,
    ResultStore,
    SessionStore,
    AnalysisClient,
    SessionExporter,
    ComicPipeline,
    StorageInspector
)


# Singleton instances
_content_store = None
_result_store = None
_session_store = None
_analysis_client = None
_session_exporter = None
_comic_pipeline = None
_storage_inspector = None


def storage_area(name: str) -> Path:
    """Path of one storage area (uploads, results, sessions, exports)"""
    return Path(settings.storage_dir) / name


def get_content_store() -> ContentStore:
    """Get ContentStore singleton"""
    global _content_store
    if _content_store is None:
        _content_store = ContentStore(storage_area("uploads"))
    return _content_store


def get_result_store() -> ResultStore:
    """Get ResultStore singleton"""
    global _result_store
    if _result_store is None:
        _result_store = ResultStore(storage_area("results"))
    return _result_store


def get_session_store() -> SessionStore:
    """Get SessionStore singleton"""
    global _session_store
    if _session_store is None:
        _session_store = SessionStore(
            storage_area("sessions"),
            default_language=settings.default_language
        )
    return _session_store


def get_analysis_client() -> AnalysisClient:
    """Get AnalysisClient singleton"""
    global _analysis_client
    if _analysis_client is None:
        _analysis_client = AnalysisClient(config=settings)
    return _analysis_client


def get_session_exporter() -> SessionExporter:
    """Get SessionExporter singleton"""
    global _session_exporter
    if _session_exporter is None:
        _session_exporter = SessionExporter(
            session_store=get_session_store(),
            result_store=get_result_store(),
            directory=storage_area("exports")
        )
    return _session_exporter


def get_comic_pipeline() -> ComicPipeline:
    """Get ComicPipeline singleton"""
    global _comic_pipeline
    if _comic_pipeline is None:
        _comic_pipeline = ComicPipeline(
            content_store=get_content_store(),
            result_store=get_result_store(),
            session_store=get_session_store(),
            analysis_client=get_analysis_client()
        )
    return _comic_pipeline


def get_storage_inspector() -> StorageInspector:
    """Get StorageInspector singleton"""
    global _storage_inspector
    if _storage_inspector is None:
        _storage_inspector = StorageInspector(
            content_store=get_content_store(),
            result_store=get_result_store(),
            session_store=get_session_store(),
            exports_dir=storage_area("exports")
        )
    return _storage_inspector
