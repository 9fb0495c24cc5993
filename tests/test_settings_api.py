import json

from conftest import auth_headers, login, upload

from gallery_api.services.sessions import SessionService


def test_default_preferences(client, alice):
    _, headers = alice

    prefs = client.get("/settings/preferences", headers=headers).json()

    assert prefs["confirmMoveToTrash"] is True
    assert prefs["defaultGallerySort"] == "chronological_desc"
    assert prefs["galleryItemsPerPage"] == 26
    assert prefs["languagePreference"] == "es"


def test_partial_update_keeps_other_values(client, alice):
    _, headers = alice

    updated = client.patch(
        "/settings/preferences",
        json={"defaultGallerySort": "name_asc", "galleryItemsPerPage": "12"},
        headers=headers,
    ).json()

    assert updated["defaultGallerySort"] == "name_asc"
    assert updated["galleryItemsPerPage"] == 12
    assert updated["confirmMoveToTrash"] is True

    again = client.patch("/settings/preferences", json={"galleryItemsPerPage": "abc"}, headers=headers).json()
    assert again["galleryItemsPerPage"] == 26
    assert again["defaultGallerySort"] == "name_asc"


def test_invalid_sort_is_rejected(client, alice):
    _, headers = alice

    response = client.patch("/settings/preferences", json={"defaultGallerySort": "random"}, headers=headers)

    assert response.status_code == 422


def test_language(client, alice):
    _, headers = alice

    updated = client.put("/settings/language", json={"language": "en"}, headers=headers).json()

    assert updated["languagePreference"] == "en"
    assert client.get("/auth/me", headers=headers).json()["preferences"]["languagePreference"] == "en"


def test_sessions_can_be_revoked(client, alice):
    _, headers = alice
    other_token = login(client, "alice")["access_token"]
    third_token = login(client, "alice")["access_token"]

    sessions = client.get("/settings/sessions", headers=headers).json()
    assert len(sessions) == 3
    assert sum(s["isCurrent"] for s in sessions) == 1

    other = next(
        s for s in client.get("/settings/sessions", headers=auth_headers(other_token)).json() if s["isCurrent"]
    )
    assert client.delete(f"/settings/sessions/{other['sessionId']}", headers=headers).status_code == 204
    assert client.get("/auth/me", headers=auth_headers(other_token)).status_code == 401

    removed = client.post("/settings/sessions/revoke-others", headers=headers).json()
    assert removed["removedCount"] == 1
    assert client.get("/auth/me", headers=auth_headers(third_token)).status_code == 401
    assert client.get("/auth/me", headers=headers).status_code == 200


def test_cannot_remove_someone_elses_session(client, alice, bob):
    _, alice_headers = alice
    _, bob_headers = bob
    bob_session = client.get("/settings/sessions", headers=bob_headers).json()[0]

    response = client.delete(f"/settings/sessions/{bob_session['sessionId']}", headers=alice_headers)

    assert response.status_code == 404


def test_storage_usage(client, alice):
    _, headers = alice
    assert client.get("/settings/storage", headers=headers).json() == {"sizeBytes": 0, "formatted": "0 Bytes"}

    upload(client, headers, "a.png")

    usage = client.get("/settings/storage", headers=headers).json()
    assert usage["sizeBytes"] == 72
    assert usage["formatted"] == "72 Bytes"


def test_export_contains_only_own_data_without_credentials(client, alice, bob):
    _, headers = alice
    _, bob_headers = bob
    upload(client, headers, "mine.png")
    upload(client, bob_headers, "theirs.png")

    response = client.get("/settings/export", headers=headers)

    assert response.status_code == 200
    assert "attachment" in response.headers["content-disposition"]
    data = response.json()
    assert [u["username"] for u in data["users.json"]] == ["alice"]
    assert "password" not in data["users.json"][0]
    assert "passwordSalt" not in data["users.json"][0]
    assert [i["originalFilename"] for i in data["gallery.json"]] == ["mine.png"]
    assert data["favorites.json"] == {"1": {"itemIds": []}}
    assert data["private_passwords.json"] == {"1": {}}
    assert len(data["active_sessions.json"]) == 1


def test_import_round_trip_keeps_login_and_session(client, alice):
    _, headers = alice
    item = upload(client, headers, "a.png")[0]
    exported = client.get("/settings/export", headers=headers).json()

    client.post("/gallery/move-to-trash", json={"itemIds": [item["id"]]}, headers=headers)
    exported["users.json"][0]["name"] = "Renamed"

    response = client.post("/settings/import", json=exported, headers=headers)

    assert response.status_code == 200, response.text
    assert sorted(response.json()["importedFiles"]) == sorted(exported)
    assert client.get("/auth/me", headers=headers).json()["name"] == "Renamed"
    assert client.get("/gallery", headers=headers).json()["totalCount"] == 1
    assert client.get("/trash", headers=headers).json()["items"] == []
    assert login(client, "alice")["access_token"]


def test_import_leaves_other_users_untouched(client, alice, bob):
    _, headers = alice
    _, bob_headers = bob
    upload(client, bob_headers, "theirs.png")

    response = client.post("/settings/import", json={"gallery.json": []}, headers=headers)

    assert response.status_code == 200
    assert client.get("/gallery", headers=bob_headers).json()["totalCount"] == 1


def test_import_rejects_invalid_files_and_writes_nothing(client, alice):
    _, headers = alice
    upload(client, headers, "a.png")

    payload = {
        "gallery.json": [],
        "users.json": [{"id": "2", "username": "mallory"}],
        "unknown.json": [],
        "favorites.json": [],
    }
    response = client.post("/settings/import", json=payload, headers=headers)

    assert response.status_code == 400
    errors = response.json()["errors"]
    assert set(errors) == {"users.json", "unknown.json", "favorites.json"}
    assert client.get("/gallery", headers=headers).json()["totalCount"] == 1


def test_import_validates_records(client, alice):
    _, headers = alice
    bad_item = {"id": "x", "ownerUserId": "1", "type": "image"}

    response = client.post("/settings/import", json={"gallery.json": [bad_item]}, headers=headers)

    assert response.status_code == 400
    assert "gallery.json" in response.json()["errors"]


def test_import_private_password_entry(client, alice):
    _, headers = alice
    client.post("/private/password", json={"password": "hidden1"}, headers=headers)
    exported = client.get("/settings/export", headers=headers).json()
    entry = exported["private_passwords.json"]["1"]
    assert set(entry) == {"hash", "salt"}

    client.post("/settings/import", json={"private_passwords.json": {"1": {}}}, headers=headers)
    assert client.get("/private/password", headers=headers).json() == {"isSet": False}

    client.post("/settings/import", json={"private_passwords.json": {"1": entry}}, headers=headers)
    assert client.post("/private/password/verify", json={"password": "hidden1"}, headers=headers).json()["valid"]


def test_export_is_valid_json_document(client, alice):
    _, headers = alice

    body = client.get("/settings/export", headers=headers).content

    assert isinstance(json.loads(body), dict)


def test_import_rejects_username_of_another_user(client, alice, bob):
    _, headers = alice
    record = client.get("/settings/export", headers=headers).json()["users.json"][0]

    response = client.post(
        "/settings/import",
        json={"users.json": [{**record, "username": "BOB"}]},
        headers=headers,
    )

    assert response.status_code == 400
    assert "users.json" in response.json()["errors"]
    assert client.get("/auth/me", headers=headers).json()["username"] == "alice"
    assert login(client, "bob")["access_token"]


def test_import_rejects_email_of_another_user(client, alice, bob):
    _, headers = alice
    bob_user, _ = bob
    record = client.get("/settings/export", headers=headers).json()["users.json"][0]

    response = client.post(
        "/settings/import",
        json={"users.json": [{**record, "email": bob_user["email"].upper()}]},
        headers=headers,
    )

    assert response.status_code == 400
    assert "users.json" in response.json()["errors"]


def test_import_rejects_malformed_user_fields(client, alice):
    _, headers = alice

    for bad in ({"name": 5}, {"preferences": "x"}):
        payload = {"users.json": [{"id": "1", "username": "alice", **bad}]}
        response = client.post("/settings/import", json=payload, headers=headers)

        assert response.status_code == 400
        assert "users.json" in response.json()["errors"]

    me = client.get("/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["name"] == "Alice"


def test_import_rejects_item_in_two_locations(client, alice):
    _, headers = alice
    item = upload(client, headers, "a.png")[0]
    gallery_slice = client.get("/settings/export", headers=headers).json()["gallery.json"]
    client.post("/gallery/move-to-trash", json={"itemIds": [item["id"]]}, headers=headers)

    response = client.post("/settings/import", json={"gallery.json": gallery_slice}, headers=headers)

    assert response.status_code == 400
    assert item["id"] in response.json()["errors"]["gallery.json"]
    assert client.get("/gallery", headers=headers).json()["totalCount"] == 0
    assert [i["id"] for i in client.get("/trash", headers=headers).json()["items"]] == [item["id"]]


async def test_sessions_are_listed_by_login_time_not_activity(store):
    def session(session_id, logged_in, active):
        return {
            "sessionId": session_id,
            "userId": "1",
            "deviceInfo": "Chrome on Windows",
            "loginTimestamp": logged_in,
            "lastActiveTimestamp": active,
        }

    await store.write("active_sessions", [
        session("old", "2024-01-01T00:00:00.000Z", "2024-06-01T00:00:00.000Z"),
        session("new", "2024-03-01T00:00:00.000Z", "2024-03-01T00:00:00.000Z"),
    ])

    sessions = await SessionService(store).list_for_user("1")

    assert [s.session_id for s in sessions] == ["new", "old"]
