import pytest

from conftest import upload


@pytest.fixture
def unlocked(client, alice):
    """Alice with a private folder password set and an unlock token."""
    _, headers = alice
    assert client.post("/private/password", json={"password": "hidden1"}, headers=headers).status_code == 204
    token = client.post("/private/unlock", json={"password": "hidden1"}, headers=headers).json()["privateToken"]
    return headers, {**headers, "X-Private-Token": token}


def test_password_status(client, alice):
    _, headers = alice

    assert client.get("/private/password", headers=headers).json() == {"isSet": False}
    client.post("/private/password", json={"password": "hidden1"}, headers=headers)
    assert client.get("/private/password", headers=headers).json() == {"isSet": True}


def test_password_rules(client, alice):
    _, headers = alice

    assert client.post("/private/password", json={"password": "123"}, headers=headers).status_code == 400
    assert client.post("/private/password/verify", json={"password": "x"}, headers=headers).status_code == 404
    client.post("/private/password", json={"password": "hidden1"}, headers=headers)
    assert client.post("/private/password", json={"password": "hidden2"}, headers=headers).status_code == 409


def test_verify_and_unlock(client, alice):
    _, headers = alice
    client.post("/private/password", json={"password": "hidden1"}, headers=headers)

    assert client.post("/private/password/verify", json={"password": "hidden1"}, headers=headers).json() == {"valid": True}
    assert client.post("/private/password/verify", json={"password": "nope12"}, headers=headers).json() == {"valid": False}
    assert client.post("/private/unlock", json={"password": "nope12"}, headers=headers).status_code == 403

    unlocked = client.post("/private/unlock", json={"password": "hidden1"}, headers=headers).json()
    assert unlocked["expiresIn"] == 600
    assert unlocked["privateToken"]


def test_items_require_private_token(client, unlocked):
    headers, private_headers = unlocked

    assert client.get("/private/items", headers=headers).status_code == 403
    assert client.get("/private/items", headers={**headers, "X-Private-Token": "bad"}).status_code == 403
    assert client.get("/private/items", headers=private_headers).json() == []


def test_private_token_of_another_user_is_rejected(client, unlocked, bob):
    _, private_headers = unlocked
    _, bob_headers = bob

    stolen = {**bob_headers, "X-Private-Token": private_headers["X-Private-Token"]}

    assert client.get("/private/items", headers=stolen).status_code == 403


def test_private_token_is_not_an_access_token(client, unlocked):
    _, private_headers = unlocked

    bearer = {"Authorization": f"Bearer {private_headers['X-Private-Token']}"}

    assert client.get("/auth/me", headers=bearer).status_code == 401


def test_move_between_gallery_and_private(client, unlocked):
    headers, private_headers = unlocked
    item = upload(client, headers, "secret.png")[0]

    moved = client.post("/gallery/move-to-private", json={"itemIds": [item["id"]]}, headers=headers).json()
    assert moved["movedCount"] == 1
    assert client.get("/gallery", headers=headers).json()["totalCount"] == 0
    assert [i["id"] for i in client.get("/private/items", headers=private_headers).json()] == [item["id"]]

    response = client.get(f"/private/items/{item['id']}/file", headers=private_headers)
    assert response.status_code == 200

    back = client.post("/private/move-to-gallery", json={"itemIds": [item["id"]]}, headers=private_headers).json()
    assert back["movedCount"] == 1
    assert client.get("/private/items", headers=private_headers).json() == []


def test_private_to_trash(client, unlocked):
    headers, private_headers = unlocked
    item = upload(client, headers, "secret.png")[0]
    client.post("/gallery/move-to-private", json={"itemIds": [item["id"]]}, headers=headers)

    client.post("/private/move-to-trash", json={"itemIds": [item["id"]]}, headers=private_headers)

    assert [i["id"] for i in client.get("/trash", headers=headers).json()["items"]] == [item["id"]]


def test_change_password(client, unlocked):
    headers, _ = unlocked

    wrong = client.put(
        "/private/password",
        json={"currentPassword": "wrong1", "newPassword": "hidden2"},
        headers=headers,
    )
    assert wrong.status_code == 403

    ok = client.put(
        "/private/password",
        json={"currentPassword": "hidden1", "newPassword": "hidden2"},
        headers=headers,
    )
    assert ok.status_code == 204
    assert client.post("/private/password/verify", json={"password": "hidden2"}, headers=headers).json()["valid"]


def test_remove_password_returns_items_to_gallery(client, unlocked):
    headers, _ = unlocked
    items = upload(client, headers, "a.png", "b.png")
    client.post("/gallery/move-to-private", json={"itemIds": [i["id"] for i in items]}, headers=headers)

    assert client.post("/private/password/remove", json={"password": "wrong1"}, headers=headers).status_code == 403

    result = client.post("/private/password/remove", json={"password": "hidden1"}, headers=headers).json()

    assert result["movedCount"] == 2
    assert client.get("/private/password", headers=headers).json() == {"isSet": False}
    assert client.get("/gallery", headers=headers).json()["totalCount"] == 2
