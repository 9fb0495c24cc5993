import asyncio

from conftest import media

from gallery_api.services.workflows import GALLERY, PRIVATE, TRASH, MediaWorkflows, transfer


def locations(docs, item_id, owner="1"):
    return [
        name for name in (GALLERY, PRIVATE, TRASH)
        if any(d["id"] == item_id and d["ownerUserId"] == owner for d in docs[name])
    ]


def test_transfer_moves_only_selected_items_of_owner():
    docs = {
        GALLERY: [media("a"), media("b"), media("a", owner="2")],
        TRASH: [],
    }

    moved = transfer(docs, "1", GALLERY, TRASH, ["a"])

    assert moved == 1
    assert [d["id"] for d in docs[TRASH]] == ["a"]
    assert {(d["id"], d["ownerUserId"]) for d in docs[GALLERY]} == {("b", "1"), ("a", "2")}


def test_transfer_does_not_duplicate_items_already_at_destination():
    docs = {PRIVATE: [media("a")], GALLERY: [media("a")]}

    moved = transfer(docs, "1", PRIVATE, GALLERY)

    assert moved == 1
    assert docs[PRIVATE] == []
    assert [d["id"] for d in docs[GALLERY]] == ["a"]


def test_transfer_keeps_destination_ordered_newest_first():
    docs = {
        TRASH: [media("old", deletionTimestamp="2024-01-01T00:00:00.000Z")],
        GALLERY: [media("new", uploaded="2024-03-01T00:00:00.000Z")],
    }
    docs[TRASH].append(media("mid", uploaded="2024-02-01T00:00:00.000Z", deletionTimestamp="2024-01-02T00:00:00.000Z"))

    transfer(docs, "1", TRASH, GALLERY)

    assert [d["id"] for d in docs[GALLERY]] == ["new", "mid", "old"]
    assert all("deletionTimestamp" not in d for d in docs[GALLERY])


async def test_item_lives_in_exactly_one_place_through_moves(store):
    await store.write(GALLERY, [media("a"), media("b")])
    workflows = MediaWorkflows(store)

    result = await workflows.gallery_to_private("1", ["a"])
    assert result.success and result.moved_count == 1

    result = await workflows.private_to_trash("1", ["a"])
    assert result.moved_count == 1

    result = await workflows.restore_from_trash("1", ["a"])
    assert result.moved_count == 1

    docs = {name: await store.read(name) for name in (GALLERY, PRIVATE, TRASH)}
    assert locations(docs, "a") == [GALLERY]
    assert locations(docs, "b") == [GALLERY]


async def test_moves_to_trash_share_one_deletion_timestamp(store):
    await store.write(GALLERY, [media("a"), media("b")])

    await MediaWorkflows(store).gallery_to_trash("1", ["a", "b"])

    trash = await store.read(TRASH)
    stamps = {d["deletionTimestamp"] for d in trash}
    assert len(trash) == 2
    assert len(stamps) == 1


async def test_move_with_no_matching_items_reports_message(store):
    await store.write(GALLERY, [media("a", owner="2")])

    result = await MediaWorkflows(store).gallery_to_trash("1", ["a"])

    assert result.success is True
    assert result.moved_count == 0
    assert "No items found" in result.error
    assert len(await store.read(GALLERY)) == 1


async def test_empty_selection_is_a_noop(store):
    result = await MediaWorkflows(store).gallery_to_private("1", [])

    assert result.success is True
    assert result.moved_count == 0
    assert result.error is None


async def test_store_failure_returns_unsuccessful_result(store):
    store.data_dir.mkdir(parents=True, exist_ok=True)
    store.path_for(TRASH).write_text("{broken", encoding="utf-8")
    await store.write(GALLERY, [media("a")])

    result = await MediaWorkflows(store).gallery_to_trash("1", ["a"])

    assert result.success is False
    assert result.moved_count == 0
    assert [d["id"] for d in await store.read(GALLERY)] == ["a"]


async def test_concurrent_moves_never_duplicate_or_lose_items(store):
    ids = [f"item{i}" for i in range(30)]
    await store.write(GALLERY, [media(item_id) for item_id in ids])
    workflows = MediaWorkflows(store)

    results = await asyncio.gather(*[
        workflows.gallery_to_trash("1", [item_id]) if i % 2 == 0
        else workflows.gallery_to_private("1", [item_id])
        for i, item_id in enumerate(ids)
    ])

    assert all(r.success and r.moved_count == 1 for r in results)
    docs = {name: await store.read(name) for name in (GALLERY, PRIVATE, TRASH)}
    assert docs[GALLERY] == []
    assert len(docs[TRASH]) == 15
    assert len(docs[PRIVATE]) == 15
    assert all(len(locations(docs, item_id)) == 1 for item_id in ids)
