"""Shared fixtures: tmp_path-backed stores, a scripted analysis client and an API client"""
import io
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from comic_translator.api import dependencies
from comic_translator.main import app
from comic_translator.models.analysis import AnalysisOptions, AnalysisResult
from comic_translator.services import (
    ComicPipeline,
    ContentStore,
    ResultStore,
    SessionExporter,
    SessionStore,
    StorageInspector,
)


def make_image(size=(40, 60), image_format="PNG", color="white") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=image_format)
    return buffer.getvalue()


def sample_result(page_number: int = 1) -> AnalysisResult:
    return AnalysisResult.model_validate({
        "page_number": page_number,
        "reading_order": [
            {
                "sequence": 1,
                "type": "narration",
                "original_text": "Meanwhile, in Gotham...",
                "chinese_translation": "与此同时，在哥谭……",
            },
            {
                "sequence": 2,
                "type": "speech_bubble",
                "character": "Batman",
                "original_text": "I'm on it.",
                "chinese_translation": "交给我。",
                "explanations": [
                    {"phrase": "on it", "meaning": "马上处理", "context": "accepting a task"}
                ],
            },
        ],
    })


class ScriptedAnalysisClient:
    """Stands in for AnalysisClient, returning a fixed result or raising a fixed error"""

    def __init__(self, result: Optional[AnalysisResult] = None, error: Optional[Exception] = None):
        self.result = result or sample_result()
        self.error = error
        self.calls: List[AnalysisOptions] = []

    async def analyze(self, image_bytes: bytes, options: AnalysisOptions) -> AnalysisResult:
        self.calls.append(options)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def storage_dir(tmp_path):
    return tmp_path / "storage"


@pytest.fixture
def content_store(storage_dir):
    return ContentStore(storage_dir / "uploads")


@pytest.fixture
def result_store(storage_dir):
    return ResultStore(storage_dir / "results")


@pytest.fixture
def session_store(storage_dir):
    return SessionStore(storage_dir / "sessions")


@pytest.fixture
def exporter(session_store, result_store, storage_dir):
    return SessionExporter(session_store, result_store, storage_dir / "exports")


@pytest.fixture
def inspector(content_store, result_store, session_store, storage_dir):
    return StorageInspector(content_store, result_store, session_store, storage_dir / "exports")


@pytest.fixture
def analysis_client():
    return ScriptedAnalysisClient()


@pytest.fixture
def pipeline(content_store, result_store, session_store, analysis_client):
    return ComicPipeline(content_store, result_store, session_store, analysis_client)


@pytest.fixture
def client(content_store, result_store, session_store, exporter, inspector, pipeline):
    app.dependency_overrides[dependencies.get_content_store] = lambda: content_store
    app.dependency_overrides[dependencies.get_result_store] = lambda: result_store
    app.dependency_overrides[dependencies.get_session_store] = lambda: session_store
    app.dependency_overrides[dependencies.get_session_exporter] = lambda: exporter
    app.dependency_overrides[dependencies.get_storage_inspector] = lambda: inspector
    app.dependency_overrides[dependencies.get_comic_pipeline] = lambda: pipeline
    yield TestClient(app)
    app.dependency_overrides.clear()
