def login(client, email: str) -> str:
    r = client.post("/auth/request-link", json={"email": email})
    assert r.status_code == 200, r.text
    token = r.json()["token"]

    r = client.post("/auth/redeem", json={"token": token})
    assert r.status_code == 200, r.text
    return r.json()["access_token"]

def auth(jwt: str) -> dict[str, str]:
    return {"authorization": f"bearer {jwt}"}

def create_workspace(client, jwt: str, name: str) -> str:
    r = client.post("/workspaces", json={"name": name}, headers=auth(jwt))
    assert r.status_code == 201, r.text
    return r.json()["workspace"]["id"]

def join(client, owner_jwt: str, ws: str, jwt: str, email: str) -> None:
    r = client.post(f"/workspaces/{ws}/invites", json={"email": email}, headers=auth(owner_jwt))
    assert r.status_code == 201, r.text
    r = client.post("/invites/accept", json={"token": r.json()["token"]}, headers=auth(jwt))
    assert r.status_code == 200, r.text

def member_row(client, jwt: str, ws: str, user_id: str) -> dict:
    r = client.get(f"/workspaces/{ws}/members", headers=auth(jwt))
    assert r.status_code == 200, r.text
    return next(m for m in r.json()["members"] if m["user_id"] == user_id)

def test_profile_change_rewrites_every_member_row(client):
    alice = login(client, "alice@example.com")
    bob = login(client, "bob@example.com")
    own_ws = create_workspace(client, alice, "alice ws")
    other_ws = create_workspace(client, bob, "bob ws")
    join(client, bob, other_ws, alice, "alice@example.com")

    r = client.get("/me", headers=auth(alice))
    assert r.status_code == 200, r.text
    alice_id = r.json()["user"]["id"]
    assert r.json()["user"]["display_name"] == "alice"

    r = client.patch(
        "/me",
        json={"username": "  ally ", "avatar_url": "https://cdn.example.com/a.png"},
        headers=auth(alice),
    )
    assert r.status_code == 200, r.text
    assert r.json()["user"]["username"] == "ally"

    for ws, jwt in ((own_ws, alice), (other_ws, bob)):
        row = member_row(client, jwt, ws, alice_id)
        assert row["username"] == "ally"
        assert row["avatar_url"] == "https://cdn.example.com/a.png"

    r = client.patch("/me", json={"avatar_url": ""}, headers=auth(alice))
    assert r.status_code == 200, r.text
    assert member_row(client, bob, other_ws, alice_id)["avatar_url"] is None
    assert member_row(client, bob, other_ws, alice_id)["username"] == "ally"

def test_username_availability(client):
    alice = login(client, "alice@example.com")
    bob = login(client, "bob@example.com")

    r = client.post("/auth/check-username", json={"username": "ally"})
    assert r.status_code == 200, r.text
    assert r.json()["available"] is True

    r = client.patch("/me", json={"username": "ally"}, headers=auth(alice))
    assert r.status_code == 200, r.text

    r = client.post("/auth/check-username", json={"username": "ally"})
    assert r.status_code == 409, r.text
    assert r.json()["detail"] == "Username already exists"

    r = client.patch("/me", json={"username": "ally"}, headers=auth(bob))
    assert r.status_code == 409, r.text

    # keeping your own name is not a conflict
    r = client.patch("/me", json={"username": "ally"}, headers=auth(alice))
    assert r.status_code == 200, r.text

    r = client.post("/auth/check-username", json={"username": "   "})
    assert r.status_code == 400, r.text
    r = client.patch("/me", json={"username": None}, headers=auth(bob))
    assert r.status_code == 400, r.text

def test_profile_requires_login(client):
    r = client.get("/me")
    assert r.status_code == 401, r.text
    r = client.patch("/me", json={"username": "x"})
    assert r.status_code == 401, r.text
