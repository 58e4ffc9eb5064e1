"""API tests for capsule recipients."""
from conftest import auth_headers


def _add(client, user, capsule_id, *emails):
    return client.post(
        f"/capsules/{capsule_id}/recipients",
        json={"recipients": [{"email": e} for e in emails]},
        headers=auth_headers(user),
    )


def test_add_recipients(client, owner, make_capsule):
    capsule = make_capsule()

    resp = _add(client, owner, capsule["id"], "a@example.com", "b@example.com")
    assert resp.status_code == 201
    data = resp.json()
    assert [r["email"] for r in data] == ["a@example.com", "b@example.com"]
    assert all(r["capsuleId"] == capsule["id"] for r in data)


def test_adding_same_email_twice_stores_one_row(client, owner, make_capsule, db_session):
    from timecapsule.models import CapsuleRecipient

    capsule = make_capsule()
    first = _add(client, owner, capsule["id"], "friend@example.com").json()
    second = _add(client, owner, capsule["id"], "Friend@Example.com").json()

    assert first[0]["id"] == second[0]["id"]
    rows = db_session.query(CapsuleRecipient).filter(CapsuleRecipient.capsule_id == capsule["id"]).all()
    assert [r.email for r in rows] == ["friend@example.com"]


def test_duplicates_within_one_request_collapse(client, owner, make_capsule):
    capsule = make_capsule()
    resp = _add(client, owner, capsule["id"], "x@example.com", "X@example.com", "y@example.com")
    assert [r["email"] for r in resp.json()] == ["x@example.com", "y@example.com"]


def test_same_email_on_two_capsules(client, owner, make_capsule):
    one = make_capsule(title="one")
    two = make_capsule(title="two")

    a = _add(client, owner, one["id"], "friend@example.com").json()[0]
    b = _add(client, owner, two["id"], "friend@example.com").json()[0]
    assert a["id"] != b["id"]


def test_recipients_validation(client, owner, make_capsule):
    capsule = make_capsule()

    empty = client.post(f"/capsules/{capsule['id']}/recipients", json={"recipients": []}, headers=auth_headers(owner))
    bad = _add(client, owner, capsule["id"], "not-an-email")
    missing = client.post(f"/capsules/{capsule['id']}/recipients", json={}, headers=auth_headers(owner))

    assert empty.status_code == bad.status_code == missing.status_code == 400


def test_add_recipients_by_non_owner_is_forbidden(client, make_user, make_capsule):
    other = make_user("other@example.com")
    capsule = make_capsule()
    assert _add(client, other, capsule["id"], "x@example.com").status_code == 403


def test_add_recipients_to_missing_capsule_is_404(client, owner):
    assert _add(client, owner, "nope", "x@example.com").status_code == 404


def test_delete_recipient(client, owner, make_capsule):
    capsule = make_capsule()
    recipient = _add(client, owner, capsule["id"], "friend@example.com").json()[0]

    resp = client.delete(f"/capsules/{capsule['id']}/recipients/{recipient['id']}", headers=auth_headers(owner))
    assert resp.status_code == 200
    assert resp.json() == {"message": "Recipient deleted"}

    view = client.get(f"/capsules/{capsule['id']}", headers=auth_headers(owner)).json()
    assert view["recipients"] == []


def test_delete_unknown_recipient_is_404(client, owner, make_capsule):
    capsule = make_capsule()
    resp = client.delete(f"/capsules/{capsule['id']}/recipients/nope", headers=auth_headers(owner))
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Recipient not found"


def test_delete_recipient_of_another_capsule_is_404(client, owner, make_capsule):
    one = make_capsule(title="one")
    two = make_capsule(title="two")
    recipient = _add(client, owner, one["id"], "friend@example.com").json()[0]

    resp = client.delete(f"/capsules/{two['id']}/recipients/{recipient['id']}", headers=auth_headers(owner))
    assert resp.status_code == 404


def test_delete_recipient_by_recipient_is_forbidden(client, owner, make_user, make_capsule):
    friend = make_user("friend@example.com")
    capsule = make_capsule()
    recipient = _add(client, owner, capsule["id"], friend["email"]).json()[0]

    resp = client.delete(f"/capsules/{capsule['id']}/recipients/{recipient['id']}", headers=auth_headers(friend))
    assert resp.status_code == 403
