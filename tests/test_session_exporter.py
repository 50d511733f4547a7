"""Session export rendering"""
import json

import pytest

from comic_translator.errors import NotFoundError, UnsupportedFormatError
from comic_translator.models.response import NewPage, PageOrder
from comic_translator.models.session import PageStatus, ResultReference
from comic_translator.services.session_exporter import ExportFormat

from conftest import sample_result


@pytest.fixture
def batman(session_store, result_store):
    session = session_store.create("Batman #1", description="Year One")
    for name in ("page-01.jpg", "page-02.jpg"):
        digest = name.replace("page-0", "").replace(".jpg", "") * 64
        session = session_store.add_page(
            session.id,
            NewPage(content_digest=digest, stored_filename=f"{digest}.jpg", original_name=name)
        )
    first = session.pages[0]
    result_store.save(first.content_digest, session.id, sample_result())
    reference = ResultReference(session_id=session.id, content_digest=first.content_digest, text_count=2)
    return session_store.update_page(
        session.id, first.id, {"status": PageStatus.COMPLETED, "result": reference}
    )


@pytest.mark.parametrize("tag, expected", [
    ("json", ExportFormat.JSON),
    ("TXT", ExportFormat.TEXT),
    ("text", ExportFormat.TEXT),
    ("md", ExportFormat.MARKDOWN),
])
def test_format_aliases(tag, expected):
    assert ExportFormat.parse(tag) == expected


def test_json_export_embeds_full_results(exporter, batman):
    export = exporter.export(batman.id, "json")

    document = json.loads(export.content)
    assert document["session"]["name"] == "Batman #1"
    first, second = document["pages"]
    assert first["full_result"]["reading_order"][1]["character"] == "Batman"
    assert "full_result" not in second
    assert export.filename.startswith("session-Batman #1-")
    assert export.filename.endswith(".json")
    assert export.size == len(export.content.encode("utf-8"))


def test_export_is_written_to_exports_area(exporter, batman):
    export = exporter.export(batman.id, "md")
    written = exporter.directory / export.filename
    assert written.read_text(encoding="utf-8") == export.content
    assert export.path == str(written)


def test_json_export_follows_reordering(exporter, session_store, batman):
    first, second = batman.pages
    session_store.reorder(batman.id, [PageOrder(page_id=second.id, order=1), PageOrder(page_id=first.id, order=2)])

    document = json.loads(exporter.export(batman.id, "json").content)

    assert [page["original_name"] for page in document["pages"]] == ["page-02.jpg", "page-01.jpg"]


def test_text_export(exporter, batman):
    content = exporter.export(batman.id, "txt").content

    assert content.startswith("Session: Batman #1\n")
    assert "Description: Year One" in content
    assert "Pages: 2 (1 completed)" in content
    assert "=== Page 1: page-01.jpg ===" in content
    assert "2. (Speech) [Batman] I'm on it." in content
    assert "   Chinese: 交给我。" in content
    assert "   - on it: 马上处理" in content
    assert "=== Page 2: page-02.jpg ===" in content


def test_markdown_export(exporter, batman):
    export = exporter.export(batman.id, "markdown")

    assert export.filename.endswith(".md")
    assert export.content.startswith("# Batman #1\n")
    assert "## Page 1: page-01.jpg" in export.content
    assert "### 2. Speech" in export.content
    assert "**Chinese Translation:** 交给我。" in export.content
    assert "- **on it:** 马上处理 (accepting a task)" in export.content


def test_unknown_format(exporter, batman):
    with pytest.raises(UnsupportedFormatError):
        exporter.export(batman.id, "pdf")


def test_unknown_session(exporter):
    with pytest.raises(NotFoundError):
        exporter.export("missing", "json")
