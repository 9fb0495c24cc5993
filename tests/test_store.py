import json

import pytest

from gallery_api.exceptions import StoreError
from gallery_api.store import COLLECTIONS, JsonDocumentStore


async def test_missing_collection_is_created_with_default(store):
    assert await store.read("gallery") == []
    assert await store.read("favorites") == {}
    assert store.path_for("gallery").exists()


async def test_empty_file_reads_as_default(store):
    store.data_dir.mkdir(parents=True, exist_ok=True)
    store.path_for("albums").write_text("   ", encoding="utf-8")

    assert await store.read("albums") == []
    assert json.loads(store.path_for("albums").read_text(encoding="utf-8")) == []


async def test_corrupt_file_raises_store_error(store):
    store.data_dir.mkdir(parents=True, exist_ok=True)
    store.path_for("users").write_text("{not json", encoding="utf-8")

    with pytest.raises(StoreError):
        await store.read("users")


async def test_wrong_document_type_raises_store_error(store):
    store.data_dir.mkdir(parents=True, exist_ok=True)
    store.path_for("favorites").write_text("[]", encoding="utf-8")

    with pytest.raises(StoreError):
        await store.read("favorites")


async def test_session_writes_every_collection_on_success(store):
    async with store.session("gallery", "trash") as docs:
        docs["gallery"].append({"id": "a"})
        docs["trash"] = [{"id": "b"}]

    assert await store.read("gallery") == [{"id": "a"}]
    assert await store.read("trash") == [{"id": "b"}]


async def test_session_writes_nothing_on_error(store):
    await store.write("gallery", [{"id": "keep"}])

    with pytest.raises(RuntimeError):
        async with store.session("gallery") as docs:
            docs["gallery"].clear()
            raise RuntimeError("boom")

    assert await store.read("gallery") == [{"id": "keep"}]


async def test_session_releases_locks_after_error(store):
    with pytest.raises(RuntimeError):
        async with store.session("albums", "gallery"):
            raise RuntimeError("boom")

    # 락이 남아 있으면 여기서 멈춤
    async with store.session("gallery", "albums") as docs:
        docs["albums"].append({"id": "x"})
    assert await store.read("albums") == [{"id": "x"}]


async def test_unknown_collection_is_rejected(store):
    with pytest.raises(KeyError):
        async with store.session("nope"):
            pass


async def test_ensure_collections_creates_all_files(store):
    await store.ensure_collections()

    for filename, _ in COLLECTIONS.values():
        assert (store.data_dir / filename).exists()
    assert store.is_writable()


async def test_existing_data_is_not_overwritten_by_ensure(store):
    await store.write("users", [{"id": "1", "username": "a"}])
    await store.ensure_collections()

    assert await store.read("users") == [{"id": "1", "username": "a"}]


async def test_unicode_is_stored_readably(tmp_path):
    store = JsonDocumentStore(tmp_path / "d")
    await store.write("albums", [{"name": "Vacaciones en España"}])

    assert "España" in store.path_for("albums").read_text(encoding="utf-8")
