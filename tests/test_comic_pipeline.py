"""ComicPipeline cache reuse and page bookkeeping"""
import asyncio

import pytest

from comic_translator.errors import NotFoundError, UpstreamError, ValidationError
from comic_translator.models.response import AnalyzeRequest, NewPage
from comic_translator.models.session import PageStatus

from conftest import make_image


@pytest.fixture
def stored(content_store):
    return content_store.put(make_image(image_format="PNG"), "page-03.png")


def test_fresh_analysis_is_cached(pipeline, analysis_client, result_store, session_store, stored):
    session = session_store.create("Batman #1")
    request = AnalyzeRequest(filename=stored.stored_name, session_id=session.id, provider="openai", temperature=0.3)

    first = asyncio.run(pipeline.analyze_page(request))
    second = asyncio.run(pipeline.analyze_page(request))

    assert not first.cached
    assert second.cached
    assert second.result == first.result
    assert len(analysis_client.calls) == 1
    assert analysis_client.calls[0].provider == "openai"
    assert analysis_client.calls[0].temperature == 0.3
    assert analysis_client.calls[0].mime_type == "image/png"
    assert result_store.load(session.id, stored.digest) == first.result


def test_cache_is_per_session(pipeline, analysis_client, session_store, stored):
    for name in ("Vol 1", "Vol 1 reprint"):
        session = session_store.create(name)
        asyncio.run(pipeline.analyze_page(AnalyzeRequest(filename=stored.stored_name, session_id=session.id)))
    assert len(analysis_client.calls) == 2


def test_page_is_marked_completed(pipeline, session_store, stored):
    session = session_store.create("Batman #1")
    session = session_store.add_page(
        session.id,
        NewPage(content_digest=stored.digest, stored_filename=stored.stored_name, original_name="page-03.png")
    )
    page_id = session.pages[0].id

    asyncio.run(pipeline.analyze_page(
        AnalyzeRequest(filename=stored.stored_name, session_id=session.id, page_id=page_id)
    ))

    session = session_store.get(session.id)
    page = session.find_page(page_id)
    assert page.status == PageStatus.COMPLETED
    assert page.result.content_digest == stored.digest
    assert page.result.text_count == 2
    assert session.metadata.completed_pages == 1


def test_failed_analysis_marks_page_error(pipeline, analysis_client, session_store, stored):
    analysis_client.error = UpstreamError("rate limited", upstream_status=429)
    session = session_store.create("Batman #1")
    session = session_store.add_page(
        session.id,
        NewPage(content_digest=stored.digest, stored_filename=stored.stored_name)
    )
    page_id = session.pages[0].id

    with pytest.raises(UpstreamError):
        asyncio.run(pipeline.analyze_page(
            AnalyzeRequest(filename=stored.stored_name, session_id=session.id, page_id=page_id)
        ))

    assert session_store.get(session.id).find_page(page_id).status == PageStatus.ERROR


def test_add_to_session_appends_completed_page(pipeline, session_store, stored):
    session = session_store.create("Batman #1")

    asyncio.run(pipeline.analyze_page(AnalyzeRequest(
        filename=stored.stored_name,
        session_id=session.id,
        add_to_session=True,
        original_name="page-03.png"
    )))

    session = session_store.get(session.id)
    assert session.metadata.total_pages == 1
    assert session.metadata.completed_pages == 1
    assert session.pages[0].original_name == "page-03.png"


def test_missing_content(pipeline):
    with pytest.raises(NotFoundError):
        asyncio.run(pipeline.analyze_page(AnalyzeRequest(filename="f" * 64 + ".jpg", session_id="s1")))


def test_hash_must_match_filename(pipeline, stored):
    with pytest.raises(ValidationError):
        asyncio.run(pipeline.analyze_page(
            AnalyzeRequest(filename=stored.stored_name, session_id="s1", hash="0" * 64)
        ))


def test_mime_type_comes_from_image_content(pipeline, analysis_client, content_store, session_store):
    misnamed = content_store.put(make_image(image_format="PNG", color="green"), "scan.jpg")
    session = session_store.create("Misnamed")

    asyncio.run(pipeline.analyze_page(AnalyzeRequest(filename=misnamed.stored_name, session_id=session.id)))

    assert misnamed.stored_name.endswith(".jpg")
    assert analysis_client.calls[0].mime_type == "image/png"
