"""API tests for /users."""


def _assert_no_secret(user: dict) -> None:
    assert "passwordHash" not in user
    assert "password_hash" not in user
    assert "password" not in user


def test_create_user_returns_user_without_hash(client):
    resp = client.post("/users", json={"email": "alice@example.com", "passwordHash": "s3cretpass"})
    assert resp.status_code == 201
    data = resp.json()
    assert data["email"] == "alice@example.com"
    assert data["id"]
    assert data["createdAt"].endswith("Z")
    _assert_no_secret(data)
    assert "s3cretpass" not in resp.text


def test_password_is_stored_hashed(client, db_session):
    from timecapsule.core.security import verify_password
    from timecapsule.models.user import User

    user = client.post("/users", json={"email": "alice@example.com", "passwordHash": "s3cretpass"}).json()

    row = db_session.get(User, user["id"])
    assert row.password_hash != "s3cretpass"
    assert verify_password("s3cretpass", row.password_hash)


def test_duplicate_email_conflicts(client):
    first = client.post("/users", json={"email": "alice@example.com", "passwordHash": "password1"})
    second = client.post("/users", json={"email": "alice@example.com", "passwordHash": "password2"})

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()["detail"] == "Email already in use"


def test_duplicate_email_differing_in_case_conflicts(client):
    client.post("/users", json={"email": "alice@example.com", "passwordHash": "password1"})
    resp = client.post("/users", json={"email": "Alice@Example.COM", "passwordHash": "password2"})
    assert resp.status_code == 409


def test_create_user_validation_errors(client):
    resp = client.post("/users", json={"email": "not-an-email", "passwordHash": "short"})
    assert resp.status_code == 400
    fields = {e["field"] for e in resp.json()["errors"]}
    assert "email" in fields
    assert any("password" in f.lower() for f in fields)


def test_create_user_requires_fields(client):
    resp = client.post("/users", json={})
    assert resp.status_code == 400
    assert len(resp.json()["errors"]) == 2


def test_list_users_strips_hashes(client, make_user):
    make_user("a@example.com")
    make_user("b@example.com")

    resp = client.get("/users")
    assert resp.status_code == 200
    users = resp.json()
    assert {u["email"] for u in users} == {"a@example.com", "b@example.com"}
    for u in users:
        _assert_no_secret(u)


def test_get_user(client, make_user):
    user = make_user("a@example.com")

    resp = client.get(f"/users/{user['id']}")
    assert resp.status_code == 200
    assert resp.json()["email"] == "a@example.com"
    _assert_no_secret(resp.json())


def test_get_missing_user_is_404(client):
    resp = client.get("/users/does-not-exist")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "User not found"


def test_patch_user_email_and_password(client, make_user, db_session):
    from timecapsule.core.security import verify_password
    from timecapsule.models.user import User

    user = make_user("a@example.com")
    resp = client.patch(f"/users/{user['id']}", json={"email": "new@example.com", "passwordHash": "brand-new-pass"})

    assert resp.status_code == 200
    assert resp.json()["email"] == "new@example.com"
    _assert_no_secret(resp.json())

    row = db_session.get(User, user["id"])
    assert verify_password("brand-new-pass", row.password_hash)


def test_patch_user_without_fields_is_400(client, make_user):
    user = make_user("a@example.com")
    resp = client.patch(f"/users/{user['id']}", json={})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "No fields to update"


def test_patch_user_short_password_is_400(client, make_user):
    user = make_user("a@example.com")
    resp = client.patch(f"/users/{user['id']}", json={"passwordHash": "short"})
    assert resp.status_code == 400


def test_patch_user_to_taken_email_conflicts(client, make_user):
    make_user("a@example.com")
    b = make_user("b@example.com")

    resp = client.patch(f"/users/{b['id']}", json={"email": "a@example.com"})
    assert resp.status_code == 409


def test_patch_missing_user_is_404(client):
    resp = client.patch("/users/nope", json={"email": "x@example.com"})
    assert resp.status_code == 404


def test_delete_user(client, make_user):
    user = make_user("a@example.com")

    resp = client.delete(f"/users/{user['id']}")
    assert resp.status_code == 200
    assert resp.json() == {"message": "User deleted successfully"}
    assert client.get(f"/users/{user['id']}").status_code == 404


def test_delete_missing_user_is_404(client):
    assert client.delete("/users/nope").status_code == 404


def test_delete_user_removes_their_capsules(client, owner, make_capsule, db_session):
    from timecapsule.models.capsule import Capsule

    capsule = make_capsule()
    assert client.delete(f"/users/{owner['id']}").status_code == 200
    assert db_session.get(Capsule, capsule["id"]) is None


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
