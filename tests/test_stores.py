"""Content, result and session stores"""
import threading

import pytest

from comic_translator.errors import NotFoundError, ValidationError
from comic_translator.models.response import NewPage, PageOrder
from comic_translator.models.session import PageStatus, ResultReference
from comic_translator.utils.helpers import generate_file_hash

from conftest import sample_result


def add_page(session_store, session_id, name, data=None):
    data = data if data is not None else name.encode()
    digest = generate_file_hash(data)
    return session_store.add_page(
        session_id,
        NewPage(content_digest=digest, stored_filename=f"{digest}.jpg", original_name=name)
    )


# Content store

def test_identical_bytes_are_stored_once(content_store):
    data = b"\xff\xd8 comic page bytes"

    first = content_store.put(data, "page-03.jpg")
    second = content_store.put(data, "foo.jpg")

    assert first.digest == generate_file_hash(data)
    assert first.stored_name == f"{first.digest}.jpg"
    assert not first.already_existed
    assert second.stored_name == first.stored_name
    assert second.already_existed
    assert len(list(content_store.list_files())) == 1


def test_extension_is_lowercased(content_store):
    stored = content_store.put(b"png bytes", "Cover.PNG")
    assert stored.stored_name.endswith(".png")
    assert content_store.get(stored.digest, ".png") == b"png bytes"


def test_get_missing_content(content_store):
    with pytest.raises(NotFoundError):
        content_store.get("0" * 64, ".jpg")


@pytest.mark.parametrize("name", ["../secrets.jpg", "abc.jpg", "0" * 64 + "/x"])
def test_resolve_rejects_foreign_names(content_store, name):
    with pytest.raises(ValidationError):
        content_store.resolve(name)


# Result store

def test_results_are_keyed_by_session_and_digest(result_store):
    digest = "a" * 64
    path = result_store.save(digest, "session-one", sample_result(page_number=7))

    assert path.name == f"session-one-{digest}.json"
    assert result_store.load("session-one", digest).page_number == 7
    assert result_store.load("session-two", digest) is None
    assert list(result_store.list_entries()) == [("session-one", digest, path)]


def test_last_write_wins(result_store):
    digest = "b" * 64
    result_store.save(digest, "s1", sample_result(page_number=1))
    result_store.save(digest, "s1", sample_result(page_number=2))
    assert result_store.load("s1", digest).page_number == 2


# Session store

def test_batman_session_with_completed_page(session_store):
    session = session_store.create("Batman #1")
    assert session.metadata.language == "en-to-cn"
    assert session.metadata.total_pages == 0

    session = add_page(session_store, session.id, "page-01.jpg")
    page = session.pages[0]
    assert page.status == PageStatus.PENDING
    assert page.order == 1

    reference = ResultReference(session_id=session.id, content_digest=page.content_digest, text_count=2)
    session = session_store.update_page(
        session.id, page.id, {"status": PageStatus.COMPLETED, "result": reference}
    )

    reloaded = session_store.get(session.id)
    assert reloaded.metadata.total_pages == 1
    assert reloaded.metadata.completed_pages == 1
    assert reloaded.pages[0].result.text_count == 2
    assert reloaded.pages[0].updated_at is not None


def test_create_requires_a_name(session_store):
    with pytest.raises(ValidationError):
        session_store.create("   ")


def test_name_is_trimmed(session_store):
    assert session_store.create("  Saga #4  ").name == "Saga #4"


def test_list_orders_by_recent_update_and_skips_corrupt_files(session_store):
    older = session_store.create("Older")
    newer = session_store.create("Newer")
    session_store.update(older.id, {"description": "touched last"})
    (session_store.directory / "broken.json").write_text("{not json", encoding="utf-8")

    names = [session.name for session in session_store.list_sessions()]

    assert names == ["Older", "Newer"]
    assert newer.id in {session.id for session in session_store.list_sessions()}


def test_update_merges_language_into_metadata(session_store):
    session = session_store.create("Tintin")
    updated = session_store.update(session.id, {"language": "en-to-tw", "description": "Vol 1"})
    assert updated.metadata.language == "en-to-tw"
    assert updated.description == "Vol 1"
    assert updated.updated_at >= session.updated_at


def test_update_rejects_unknown_fields(session_store):
    session = session_store.create("Tintin")
    with pytest.raises(ValidationError):
        session_store.update(session.id, {"pages": []})


def test_update_missing_session(session_store):
    with pytest.raises(NotFoundError):
        session_store.update("does-not-exist", {"name": "x"})


def test_update_missing_page(session_store):
    session = session_store.create("Tintin")
    with pytest.raises(NotFoundError):
        session_store.update_page(session.id, "nope", {"status": PageStatus.ERROR})


def test_delete_keeps_content_and_results(session_store, content_store, result_store):
    stored = content_store.put(b"page", "page.jpg")
    session = session_store.create("Short lived")
    result_store.save(stored.digest, session.id, sample_result())

    deleted = session_store.delete(session.id)

    assert deleted.id == session.id
    assert session_store.get(session.id) is None
    assert content_store.get(stored.digest, ".jpg") == b"page"
    assert result_store.load(session.id, stored.digest) is not None
    with pytest.raises(NotFoundError):
        session_store.delete(session.id)


def test_reorder_sorts_pages_and_skips_unknown_ids(session_store):
    session = session_store.create("Watchmen")
    for name in ("a.jpg", "b.jpg", "c.jpg"):
        session = add_page(session_store, session.id, name)
    a, b, c = session.pages

    session = session_store.reorder(session.id, [
        PageOrder(page_id=c.id, order=1),
        PageOrder(page_id=a.id, order=3),
        PageOrder(page_id=b.id, order=2),
        PageOrder(page_id="ghost", order=0),
    ])

    assert [page.original_name for page in session.pages] == ["c.jpg", "b.jpg", "a.jpg"]
    assert [page.original_name for page in session_store.get(session.id).pages] == ["c.jpg", "b.jpg", "a.jpg"]


def test_concurrent_page_completions_are_not_lost(session_store):
    session = session_store.create("Parallel")
    for index in range(8):
        session = add_page(session_store, session.id, f"p{index}.jpg")

    def complete(page_id):
        session_store.update_page(session.id, page_id, {"status": PageStatus.COMPLETED})

    threads = [threading.Thread(target=complete, args=(page.id,)) for page in session.pages]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert session_store.get(session.id).metadata.completed_pages == 8


def test_unknown_session_ids_do_not_register_locks(session_store):
    for session_id in ("ghost-1", "ghost-2", "../escape"):
        with pytest.raises(NotFoundError):
            session_store.update(session_id, {"name": "x"})
        with pytest.raises(NotFoundError):
            session_store.reorder(session_id, [])

    assert session_store._locks == {}


def test_explicit_extension_overrides_uploaded_name(content_store):
    stored = content_store.put(b"gif bytes", "animation.jpg", extension=".gif")
    assert stored.stored_name == f"{stored.digest}.gif"
    assert stored.original_name == "animation.jpg"
