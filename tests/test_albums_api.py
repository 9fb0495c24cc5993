from conftest import upload


def create_album(client, headers, name):
    response = client.post("/albums", json={"name": name}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_create_and_list_albums_sorted_by_name(client, alice):
    _, headers = alice
    create_album(client, headers, "Zoo")
    album = create_album(client, headers, "  beach  ")

    assert album["name"] == "beach"
    assert album["itemIds"] == []
    names = [a["name"] for a in client.get("/albums", headers=headers).json()]
    assert names == ["beach", "Zoo"]


def test_album_names_are_unique_per_user(client, alice, bob):
    _, alice_headers = alice
    _, bob_headers = bob
    create_album(client, alice_headers, "Trips")

    assert client.post("/albums", json={"name": "trips"}, headers=alice_headers).status_code == 409
    assert client.post("/albums", json={"name": "Trips"}, headers=bob_headers).status_code == 201


def test_blank_name_is_rejected(client, alice):
    _, headers = alice

    assert client.post("/albums", json={"name": "   "}, headers=headers).status_code == 400


def test_rename_album(client, alice):
    _, headers = alice
    album = create_album(client, headers, "Old")
    create_album(client, headers, "Taken")

    assert client.patch(f"/albums/{album['id']}", json={"name": "taken"}, headers=headers).status_code == 409
    renamed = client.patch(f"/albums/{album['id']}", json={"name": "New"}, headers=headers).json()
    assert renamed["name"] == "New"


def test_add_items_only_from_own_gallery(client, alice, bob):
    _, headers = alice
    _, bob_headers = bob
    mine = upload(client, headers, "a.png", "b.png")
    theirs = upload(client, bob_headers, "c.png")
    album = create_album(client, headers, "Mix")

    added = client.post(
        f"/albums/{album['id']}/items",
        json={"itemIds": [mine[0]["id"], mine[0]["id"], theirs[0]["id"]]},
        headers=headers,
    ).json()

    assert added["addedCount"] == 1
    detail = client.get(f"/albums/{album['id']}", headers=headers).json()
    assert detail["itemIds"] == [mine[0]["id"]]
    assert [i["id"] for i in detail["items"]] == [mine[0]["id"]]


def test_album_hides_items_that_left_the_gallery(client, alice):
    _, headers = alice
    item = upload(client, headers, "a.png")[0]
    album = create_album(client, headers, "A")
    client.post(f"/albums/{album['id']}/items", json={"itemIds": [item["id"]]}, headers=headers)

    client.post("/gallery/move-to-trash", json={"itemIds": [item["id"]]}, headers=headers)

    detail = client.get(f"/albums/{album['id']}", headers=headers).json()
    assert detail["itemIds"] == [item["id"]]
    assert detail["items"] == []


def test_remove_item_and_delete_album(client, alice):
    _, headers = alice
    item = upload(client, headers, "a.png")[0]
    album = create_album(client, headers, "A")
    client.post(f"/albums/{album['id']}/items", json={"itemIds": [item["id"]]}, headers=headers)

    assert client.delete(f"/albums/{album['id']}/items/{item['id']}", headers=headers).status_code == 204
    assert client.delete(f"/albums/{album['id']}/items/{item['id']}", headers=headers).status_code == 404

    assert client.delete(f"/albums/{album['id']}", headers=headers).status_code == 204
    assert client.get(f"/albums/{album['id']}", headers=headers).status_code == 404
    assert client.get("/gallery", headers=headers).json()["totalCount"] == 1


def test_other_users_album_is_not_found(client, alice, bob):
    _, headers = alice
    _, bob_headers = bob
    album = create_album(client, headers, "Private")

    assert client.get(f"/albums/{album['id']}", headers=bob_headers).status_code == 404
    assert client.delete(f"/albums/{album['id']}", headers=bob_headers).status_code == 404
