from conftest import PNG_BYTES, upload


def create_link(client, headers, item_id):
    response = client.post("/share/links", json={"itemId": item_id}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_public_link_is_viewable_without_auth(client, alice):
    user, headers = alice
    item = upload(client, headers, "a.png")[0]
    link = create_link(client, headers, item["id"])

    assert link["isActive"] is True
    view = client.get(f"/share/public/{link['shareId']}")
    assert view.status_code == 200
    assert view.json()["item"]["id"] == item["id"]
    assert view.json()["ownerName"] == user["name"]

    file_response = client.get(f"/share/public/{link['shareId']}/file")
    assert file_response.content == PNG_BYTES


def test_cannot_share_someone_elses_item(client, alice, bob):
    _, headers = alice
    _, bob_headers = bob
    item = upload(client, bob_headers, "b.png")[0]

    assert client.post("/share/links", json={"itemId": item["id"]}, headers=headers).status_code == 404


def test_unknown_link_is_404(client):
    assert client.get("/share/public/does-not-exist").status_code == 404


def test_revoked_link_is_404(client, alice):
    _, headers = alice
    item = upload(client, headers, "a.png")[0]
    link = create_link(client, headers, item["id"])

    assert client.delete(f"/share/links/{link['shareId']}", headers=headers).status_code == 204
    assert client.get(f"/share/public/{link['shareId']}").status_code == 404
    assert client.get("/share/links", headers=headers).json() == []


def test_link_to_item_that_left_gallery_is_gone_and_revoked(client, alice):
    _, headers = alice
    item = upload(client, headers, "a.png")[0]
    link = create_link(client, headers, item["id"])
    client.post("/gallery/move-to-trash", json={"itemIds": [item["id"]]}, headers=headers)

    assert client.get(f"/share/public/{link['shareId']}").status_code == 410
    # 두 번째 접근부터는 비활성 링크
    assert client.get(f"/share/public/{link['shareId']}").status_code == 404


def test_list_links_includes_item(client, alice):
    _, headers = alice
    item = upload(client, headers, "a.png")[0]
    create_link(client, headers, item["id"])

    links = client.get("/share/links", headers=headers).json()

    assert len(links) == 1
    assert links[0]["item"]["id"] == item["id"]


def test_direct_share_flow(client, alice, bob):
    alice_user, alice_headers = alice
    bob_user, bob_headers = bob
    item = upload(client, alice_headers, "a.png")[0]

    response = client.post(
        "/share/direct",
        json={"itemId": item["id"], "targetUserId": bob_user["id"], "message": "  look  "},
        headers=alice_headers,
    )
    assert response.status_code == 201
    share = response.json()
    assert share["message"] == "look"
    assert share["status"] == "active"

    received = client.get("/share/direct/received", headers=bob_headers).json()
    assert [s["shareInstanceId"] for s in received] == [share["shareInstanceId"]]
    assert received[0]["ownerName"] == alice_user["name"]
    assert received[0]["item"]["id"] == item["id"]

    sent = client.get("/share/direct/sent", headers=alice_headers).json()
    assert sent[0]["targetName"] == bob_user["name"]

    file_response = client.get(f"/share/direct/{share['shareInstanceId']}/file", headers=bob_headers)
    assert file_response.status_code == 200


def test_direct_share_rules(client, alice, bob):
    alice_user, alice_headers = alice
    bob_user, _ = bob
    item = upload(client, alice_headers, "a.png")[0]
    body = {"itemId": item["id"], "targetUserId": bob_user["id"]}

    self_share = {"itemId": item["id"], "targetUserId": alice_user["id"]}
    assert client.post("/share/direct", json=self_share, headers=alice_headers).status_code == 400
    assert client.post("/share/direct", json={**body, "targetUserId": "99"}, headers=alice_headers).status_code == 404
    assert client.post("/share/direct", json=body, headers=alice_headers).status_code == 201
    assert client.post("/share/direct", json=body, headers=alice_headers).status_code == 409


def test_revoke_direct_share(client, alice, bob):
    _, alice_headers = alice
    bob_user, bob_headers = bob
    item = upload(client, alice_headers, "a.png")[0]
    share = client.post(
        "/share/direct",
        json={"itemId": item["id"], "targetUserId": bob_user["id"]},
        headers=alice_headers,
    ).json()

    # 대상자는 취소할 수 없음
    assert client.delete(f"/share/direct/{share['shareInstanceId']}", headers=bob_headers).status_code == 404
    assert client.delete(f"/share/direct/{share['shareInstanceId']}", headers=alice_headers).status_code == 204

    assert client.get("/share/direct/received", headers=bob_headers).json() == []
    assert client.get(f"/share/direct/{share['shareInstanceId']}/file", headers=bob_headers).status_code == 404

    # 취소 후 다시 공유 가능
    again = client.post(
        "/share/direct",
        json={"itemId": item["id"], "targetUserId": bob_user["id"]},
        headers=alice_headers,
    )
    assert again.status_code == 201


def test_received_share_hidden_when_item_leaves_gallery(client, alice, bob):
    _, alice_headers = alice
    bob_user, bob_headers = bob
    item = upload(client, alice_headers, "a.png")[0]
    client.post(
        "/share/direct",
        json={"itemId": item["id"], "targetUserId": bob_user["id"]},
        headers=alice_headers,
    )

    client.post("/gallery/move-to-private", json={"itemIds": [item["id"]]}, headers=alice_headers)

    assert client.get("/share/direct/received", headers=bob_headers).json() == []
