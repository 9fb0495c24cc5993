from datetime import datetime, timedelta, timezone

import pytest

from conftest import media

from gallery_api.exceptions import StoreError
from gallery_api.services.trash import TrashService
from gallery_api.services.workflows import GALLERY, TRASH


def iso(dt: datetime) -> str:
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def trashed(item_id, owner="1", days_ago=0, with_file=None):
    deleted = datetime.now(timezone.utc) - timedelta(days=days_ago)
    doc = media(item_id, owner=owner, deletionTimestamp=iso(deleted))
    if with_file is not None:
        with_file.mkdir(parents=True, exist_ok=True)
        (with_file / f"{item_id}-stored.png").write_bytes(b"data")
    return doc


async def test_auto_purge_removes_only_expired_items(store, files):
    await store.write(TRASH, [
        trashed("old", days_ago=31, with_file=files.uploads_dir),
        trashed("recent", days_ago=3, with_file=files.uploads_dir),
    ])

    purged = await TrashService(store, files).auto_purge(retention_days=30)

    assert purged == 1
    assert [d["id"] for d in await store.read(TRASH)] == ["recent"]
    assert not (files.uploads_dir / "old-stored.png").exists()
    assert (files.uploads_dir / "recent-stored.png").exists()


async def test_auto_purge_for_one_user_leaves_others(store, files):
    await store.write(TRASH, [
        trashed("mine", owner="1", days_ago=40),
        trashed("theirs", owner="2", days_ago=40),
    ])

    purged = await TrashService(store, files).auto_purge(user_id="1", retention_days=30)

    assert purged == 1
    assert [d["id"] for d in await store.read(TRASH)] == ["theirs"]


async def test_auto_purge_keeps_items_without_valid_timestamp(store, files):
    broken = media("broken", deletionTimestamp="not-a-date")
    missing = media("missing")
    await store.write(TRASH, [broken, missing])

    assert await TrashService(store, files).auto_purge(retention_days=0) == 0
    assert len(await store.read(TRASH)) == 2


async def test_list_items_purges_and_sorts_newest_deletion_first(store, files):
    await store.write(TRASH, [
        trashed("older", days_ago=2),
        trashed("expired", days_ago=45),
        trashed("newer", days_ago=1),
    ])

    items = await TrashService(store, files).list_items("1")

    assert [item.id for item in items] == ["newer", "older"]


async def test_delete_permanently_removes_files_and_records(store, files):
    await store.write(TRASH, [
        trashed("a", with_file=files.uploads_dir),
        trashed("b", with_file=files.uploads_dir),
    ])

    result = await TrashService(store, files).delete_permanently("1", ["a"])

    assert result.success is True
    assert result.deleted_count == 1
    assert [d["id"] for d in await store.read(TRASH)] == ["b"]
    assert not (files.uploads_dir / "a-stored.png").exists()


async def test_delete_permanently_reports_unknown_ids(store, files):
    await store.write(TRASH, [trashed("a")])

    result = await TrashService(store, files).delete_permanently("1", ["a", "ghost"])

    assert result.success is False
    assert result.deleted_count == 1
    assert result.error == "Not all selected items were found or belonged to the user."


async def test_delete_permanently_with_missing_file_still_counts(store, files):
    await store.write(TRASH, [trashed("nofile")])

    result = await TrashService(store, files).delete_permanently("1", ["nofile"])

    assert result.success is True
    assert await store.read(TRASH) == []


async def test_delete_permanently_refused_path_keeps_going(store, files):
    bad = trashed("bad")
    bad["filePath"] = "/uploads/../secret.txt"
    await store.write(TRASH, [bad])

    result = await TrashService(store, files).delete_permanently("1", ["bad"])

    assert result.success is False
    assert result.deleted_count == 0
    assert len(result.errors) == 1
    assert await store.read(TRASH) == []


async def test_empty_only_touches_callers_items(store, files):
    await store.write(TRASH, [trashed("a"), trashed("b"), trashed("c", owner="2")])

    result = await TrashService(store, files).empty("1")

    assert result.deleted_count == 2
    assert [d["id"] for d in await store.read(TRASH)] == ["c"]


async def test_restore_moves_back_to_gallery(store, files):
    await store.write(TRASH, [trashed("a")])

    result = await TrashService(store, files).restore("1", "a")

    assert result.moved_count == 1
    gallery = await store.read(GALLERY)
    assert [d["id"] for d in gallery] == ["a"]
    assert "deletionTimestamp" not in gallery[0]


async def test_files_are_kept_when_trash_cannot_be_saved(store, files, monkeypatch):
    await store.write(TRASH, [trashed("a", with_file=files.uploads_dir)])

    async def failing_write(name, data):
        raise StoreError("disk full")

    monkeypatch.setattr(store, "_write", failing_write)

    with pytest.raises(StoreError):
        await TrashService(store, files).delete_permanently("1", ["a"])

    assert (files.uploads_dir / "a-stored.png").exists()
