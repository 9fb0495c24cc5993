from conftest import PNG_BYTES, upload


def test_upload_creates_items_and_files(client, alice, data_dirs):
    _, headers = alice
    _, uploads_dir = data_dirs

    items = upload(client, headers, "beach.png", adult_content=True)

    assert len(items) == 1
    item = items[0]
    assert item["originalFilename"] == "beach.png"
    assert item["type"] == "image"
    assert item["adultContent"] is True
    assert item["filePath"] == f"/uploads/{item['filename']}"
    assert (uploads_dir / item["filename"]).read_bytes() == PNG_BYTES


def test_upload_skips_unsupported_types(client, alice):
    _, headers = alice

    response = client.post(
        "/gallery/upload",
        files=[
            ("files", ("notes.txt", b"hello", "text/plain")),
            ("files", ("clip.mp4", b"\x00\x00", "video/mp4")),
        ],
        headers=headers,
    )

    assert response.status_code == 201
    body = response.json()
    assert [i["type"] for i in body["items"]] == ["video"]
    assert body["skipped"] == ["notes.txt"]


def test_upload_with_only_unsupported_files_is_rejected(client, alice):
    _, headers = alice

    response = client.post(
        "/gallery/upload",
        files=[("files", ("notes.txt", b"hello", "text/plain"))],
        headers=headers,
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "No valid files were processed."


def test_gallery_is_scoped_to_owner(client, alice, bob):
    _, alice_headers = alice
    _, bob_headers = bob
    item = upload(client, alice_headers, "a.png")[0]

    assert client.get("/gallery", headers=bob_headers).json()["totalCount"] == 0
    assert client.get(f"/gallery/{item['id']}", headers=bob_headers).status_code == 404
    assert client.get(f"/gallery/{item['id']}", headers=alice_headers).status_code == 200


def test_pagination_uses_per_page_and_clamps_page(client, alice):
    _, headers = alice
    upload(client, headers, "a.png", "b.png", "c.png")

    page = client.get("/gallery", params={"perPage": 2, "page": 9}, headers=headers).json()

    assert page["page"] == 2
    assert page["totalPages"] == 2
    assert page["totalCount"] == 3
    assert len(page["items"]) == 1


def test_name_sort_and_type_filter(client, alice):
    _, headers = alice
    upload(client, headers, "b.png", "A.png")
    upload(client, headers, "c.mp4", content_type="video/mp4")

    names = [
        i["originalFilename"]
        for i in client.get("/gallery", params={"sort": "name_asc"}, headers=headers).json()["items"]
    ]
    assert names == ["A.png", "b.png", "c.mp4"]

    videos = client.get("/gallery", params={"type": "video"}, headers=headers).json()
    assert [i["originalFilename"] for i in videos["items"]] == ["c.mp4"]


def test_grouped_listing(client, alice):
    _, headers = alice
    upload(client, headers, "a.png", "b.png")

    page = client.get("/gallery", params={"group": "true"}, headers=headers).json()

    assert len(page["groups"]) == 1
    assert len(page["groups"][0]["items"]) == 2


def test_download_file(client, alice):
    _, headers = alice
    item = upload(client, headers, "a.png")[0]

    response = client.get(f"/gallery/{item['id']}/file", headers=headers)

    assert response.status_code == 200
    assert response.content == PNG_BYTES
    assert response.headers["content-type"] == "image/png"


def test_move_to_trash_and_restore(client, alice):
    _, headers = alice
    item = upload(client, headers, "a.png")[0]

    moved = client.post("/gallery/move-to-trash", json={"itemIds": [item["id"]]}, headers=headers).json()
    assert moved == {"success": True, "movedCount": 1, "error": None}
    assert client.get("/gallery", headers=headers).json()["totalCount"] == 0

    trash = client.get("/trash", headers=headers).json()
    assert [i["id"] for i in trash["items"]] == [item["id"]]
    assert trash["retentionDays"] == 30
    assert trash["items"][0]["deletionTimestamp"]

    restored = client.post(f"/trash/{item['id']}/restore", headers=headers).json()
    assert restored["movedCount"] == 1
    assert client.get("/trash", headers=headers).json()["items"] == []
    assert client.get("/gallery", headers=headers).json()["totalCount"] == 1


def test_restore_unknown_item_is_404(client, alice):
    _, headers = alice

    assert client.post("/trash/nope/restore", headers=headers).status_code == 404


def test_trash_delete_and_empty(client, alice, data_dirs):
    _, headers = alice
    _, uploads_dir = data_dirs
    items = upload(client, headers, "a.png", "b.png", "c.png")
    ids = [i["id"] for i in items]
    client.post("/gallery/move-to-trash", json={"itemIds": ids}, headers=headers)

    deleted = client.post("/trash/delete", json={"itemIds": ids[:1]}, headers=headers).json()
    assert deleted["success"] is True
    assert deleted["deletedCount"] == 1

    emptied = client.post("/trash/empty", headers=headers).json()
    assert emptied["deletedCount"] == 2
    assert list(uploads_dir.iterdir()) == []


def test_delete_from_gallery_skips_trash(client, alice):
    _, headers = alice
    item = upload(client, headers, "a.png")[0]

    response = client.delete(f"/gallery/{item['id']}", headers=headers)

    assert response.json() == {"success": True, "deletedCount": 1, "error": None, "errors": []}
    assert client.get("/trash", headers=headers).json()["items"] == []
    assert client.delete(f"/gallery/{item['id']}", headers=headers).status_code == 404


def test_page_size_preference_is_used(client, alice):
    _, headers = alice
    client.patch("/settings/preferences", json={"galleryItemsPerPage": 2}, headers=headers)
    upload(client, headers, "a.png", "b.png", "c.png")

    page = client.get("/gallery", headers=headers).json()

    assert page["perPage"] == 2
    assert page["totalPages"] == 2


def test_single_page_preference_returns_everything(client, alice):
    _, headers = alice
    client.patch("/settings/preferences", json={"galleryItemsPerPage": 999999}, headers=headers)
    upload(client, headers, "a.png", "b.png", "c.png")

    page = client.get("/gallery", headers=headers).json()

    assert page["totalPages"] == 1
    assert page["totalCount"] == 3
    assert len(page["items"]) == 3
    assert page["perPage"] == 3
