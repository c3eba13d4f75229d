def test_register_login_me(client):
    register_payload = {
        "name": "Admin User",
        "email": "Admin@Example.edu",
        "password": "password123",
        "role": "admin",
        "department": "Administration",
    }

    register_response = client.post("/api/auth/register", json=register_payload)
    assert register_response.status_code == 201
    data = register_response.json()
    assert data["email"] == "admin@example.edu"
    assert data["role"] == "admin"
    assert "hashed_password" not in data

    login_response = client.post(
        "/api/auth/login",
        json={"email": "admin@example.edu", "password": register_payload["password"]},
    )
    assert login_response.status_code == 200
    login_data = login_response.json()
    assert login_data["token_type"] == "bearer"
    assert login_data["user"]["email"] == "admin@example.edu"

    token = login_data["access_token"]
    me_response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me_response.status_code == 200
    assert me_response.json()["name"] == "Admin User"


def test_duplicate_email_is_rejected(client):
    payload = {"name": "Prof", "email": "prof@example.edu", "password": "password123", "role": "professor"}

    assert client.post("/api/auth/register", json=payload).status_code == 201
    assert client.post("/api/auth/register", json=payload).status_code == 409


def test_only_first_account_may_be_admin(client):
    first = {"name": "First", "email": "first@example.edu", "password": "password123", "role": "admin"}
    second = {"name": "Second", "email": "second@example.edu", "password": "password123", "role": "admin"}

    assert client.post("/api/auth/register", json=first).status_code == 201
    assert client.post("/api/auth/register", json=second).status_code == 403


def test_bad_credentials(client):
    payload = {"name": "Prof", "email": "prof@example.edu", "password": "password123", "role": "professor"}
    client.post("/api/auth/register", json=payload)

    wrong = client.post("/api/auth/login", json={"email": "prof@example.edu", "password": "password999"})
    unknown = client.post("/api/auth/login", json={"email": "nobody@example.edu", "password": "password123"})
    no_token = client.get("/api/auth/me")
    bad_token = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})

    assert wrong.status_code == 401
    assert unknown.status_code == 401
    assert no_token.status_code == 401
    assert no_token.headers["www-authenticate"] == "Bearer"
    assert bad_token.status_code == 401


def test_user_directory_respects_role(client, users):
    admin_view = client.get("/api/users", headers=users["admin"]["headers"])
    coordinator_view = client.get("/api/users", headers=users["coordinator"]["headers"])
    student_view = client.get("/api/users", headers=users["student"]["headers"])

    assert admin_view.status_code == 200
    assert len(admin_view.json()) == 4
    assert all("email" in row for row in admin_view.json())
    assert coordinator_view.status_code == 200
    assert all("email" not in row for row in coordinator_view.json())
    assert student_view.status_code == 403


def test_admin_changes_roles(client, users):
    student_id = users["student"]["id"]

    promoted = client.patch(
        f"/api/users/{student_id}/role",
        json={"role": "professor"},
        headers=users["admin"]["headers"],
    )
    denied = client.patch(
        f"/api/users/{student_id}/role",
        json={"role": "admin"},
        headers=users["coordinator"]["headers"],
    )
    self_demotion = client.patch(
        f"/api/users/{users['admin']['id']}/role",
        json={"role": "student"},
        headers=users["admin"]["headers"],
    )

    assert promoted.status_code == 200
    assert promoted.json()["role"] == "professor"
    assert denied.status_code == 403
    assert self_demotion.status_code == 400

    professors = client.get("/api/professors", headers=users["student"]["headers"]).json()
    assert {row["id"] for row in professors} == {users["professor"]["id"], student_id}
