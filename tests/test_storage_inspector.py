"""Storage statistics, duplicate and orphan reports"""
from comic_translator.models.response import NewPage
from comic_translator.utils.helpers import format_bytes

from conftest import sample_result


def test_format_bytes():
    assert format_bytes(0) == "0 Bytes"
    assert format_bytes(512) == "512 Bytes"
    assert format_bytes(1536) == "1.5 KB"
    assert format_bytes(10 * 1024 * 1024) == "10 MB"


def test_stats_per_area(inspector, content_store, session_store):
    content_store.put(b"x" * 1536, "a.jpg")
    session_store.create("Stats")

    stats = inspector.get_stats()

    assert stats.uploads.files == 1
    assert stats.uploads.size_formatted == "1.5 KB"
    assert stats.sessions.files == 1
    assert stats.exports.files == 0
    assert stats.total.files == 2
    assert stats.total.size == stats.uploads.size + stats.sessions.size


def test_duplicates_group_same_content_only(inspector, content_store):
    jpg = content_store.put(b"same bytes", "a.jpg")
    png = content_store.put(b"same bytes", "a.png")
    content_store.put(b"diff bytes", "b.jpg")

    assert inspector.find_duplicates() == [sorted([jpg.stored_name, png.stored_name])]


def test_orphans_report_unreferenced_uploads_and_stale_results(
    inspector, content_store, result_store, session_store
):
    used = content_store.put(b"used", "used.jpg")
    unused = content_store.put(b"unused", "unused.jpg")
    session = session_store.create("Kept")
    session_store.add_page(session.id, NewPage(content_digest=used.digest, stored_filename=used.stored_name))
    result_store.save(used.digest, session.id, sample_result())
    gone = session_store.create("Gone")
    stale = result_store.save(used.digest, gone.id, sample_result())
    session_store.delete(gone.id)

    report = inspector.find_orphans()

    assert report.orphaned_uploads == [unused.stored_name]
    assert report.orphaned_results == [stale.name]


def test_cleanup_removes_nothing(inspector, content_store):
    content_store.put(b"unused", "unused.jpg")

    result = inspector.cleanup()

    assert result.cleaned == {"uploads": 0, "results": 0}
    assert len(list(content_store.list_files())) == 1
