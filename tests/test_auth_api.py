from conftest import auth_headers, login, register

CHROME_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def test_register_returns_public_profile(client):
    user = register(client, "alice", name="alice smith")

    assert user["id"] == "1"
    assert user["username"] == "alice"
    assert user["avatarLetter"] == "A"
    assert user["preferences"]["galleryItemsPerPage"] == 26
    assert "password" not in user
    assert "passwordSalt" not in user


def test_user_ids_increment(client):
    assert register(client, "alice")["id"] == "1"
    assert register(client, "bob")["id"] == "2"


def test_duplicate_username_or_email_is_rejected_case_insensitively(client):
    register(client, "alice")

    response = client.post(
        "/auth/register",
        json={"name": "A", "username": "ALICE", "email": "other@example.com", "password": "secret123"},
    )
    assert response.status_code == 409

    response = client.post(
        "/auth/register",
        json={"name": "A", "username": "alice2", "email": "Alice@Example.com", "password": "secret123"},
    )
    assert response.status_code == 409


def test_short_password_is_rejected(client):
    response = client.post(
        "/auth/register",
        json={"name": "A", "username": "alice", "email": "a@example.com", "password": "123"},
    )
    assert response.status_code == 422


def test_login_with_username_or_email(client):
    register(client, "alice")

    assert login(client, "alice")["token_type"] == "bearer"
    assert login(client, "ALICE@example.com")["access_token"]


def test_login_with_wrong_password_fails(client):
    register(client, "alice")

    response = client.post("/auth/login", json={"identifier": "alice", "password": "wrong-pass"})

    assert response.status_code == 401


def test_me_requires_token(client):
    assert client.get("/auth/me").status_code == 401
    assert client.get("/auth/me", headers=auth_headers("garbage")).status_code == 401


def test_me_returns_current_user(client, alice):
    _, headers = alice

    response = client.get("/auth/me", headers=headers)

    assert response.status_code == 200
    assert response.json()["username"] == "alice"


def test_logout_invalidates_token(client, alice):
    _, headers = alice

    assert client.post("/auth/logout", headers=headers).status_code == 204
    assert client.get("/auth/me", headers=headers).status_code == 401


def test_login_records_session_with_device_label(client):
    register(client, "alice")
    token = login(client, "alice", user_agent=CHROME_WINDOWS)["access_token"]

    sessions = client.get("/settings/sessions", headers=auth_headers(token)).json()

    assert len(sessions) == 1
    assert sessions[0]["deviceInfo"] == "Chrome on Windows 10/11"
    assert sessions[0]["isCurrent"] is True


def test_update_profile_changes_name_and_password(client, alice):
    _, headers = alice

    response = client.patch("/auth/me", json={"name": "zoe", "newPassword": "another123"}, headers=headers)

    assert response.status_code == 200
    assert response.json()["name"] == "zoe"
    assert response.json()["avatarLetter"] == "Z"
    assert client.post("/auth/login", json={"identifier": "alice", "password": "secret123"}).status_code == 401
    assert login(client, "alice", password="another123")["access_token"]


def test_users_for_sharing_excludes_caller(client, alice, bob):
    _, headers = alice

    users = client.get("/auth/users", headers=headers).json()

    assert [u["username"] for u in users] == ["bob"]
    assert set(users[0]) == {"id", "name", "username"}
