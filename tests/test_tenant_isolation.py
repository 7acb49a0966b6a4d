def login(client, email: str) -> str:
    r = client.post("/auth/request-link", json={"email": email})
    assert r.status_code == 200
    token = r.json()["token"]
    r = client.post("/auth/redeem", json={"token": token})
    assert r.status_code == 200
    return r.json()["access_token"]

def auth_headers(jwt: str) -> dict[str, str]:
    return {"authorization": f"bearer {jwt}"}

def test_tenant_isolation_projects_and_tasks(client):
    a = login(client, "a@example.com")
    b = login(client, "b@example.com")

    r = client.post("/workspaces", json={"name": "ws-a"}, headers=auth_headers(a))
    assert r.status_code == 201
    ws_a = r.json()["workspace"]["id"]

    r = client.post("/workspaces", json={"name": "ws-b"}, headers=auth_headers(b))
    assert r.status_code == 201
    ws_b = r.json()["workspace"]["id"]

    r = client.post(f"/workspaces/{ws_a}/projects", json={"title": "p1"}, headers=auth_headers(a))
    assert r.status_code == 201
    project_a = r.json()["project"]["id"]

    r = client.post(f"/workspaces/{ws_a}/tasks", json={"title": "t1", "project_id": project_a}, headers=auth_headers(a))
    assert r.status_code == 201
    task_a = r.json()["task"]["id"]

    # b is not a member of ws_a, should be blocked
    r = client.get(f"/workspaces/{ws_a}/projects", headers=auth_headers(b))
    assert r.status_code == 403
    assert r.json()["error"] == "not_member"

    # also block direct mutation attempts (even if you guessed ids)
    r = client.patch(
        f"/workspaces/{ws_a}/projects/{project_a}",
        json={"title": "hacked"},
        headers=auth_headers(b),
    )
    assert r.status_code == 403

    r = client.delete(f"/workspaces/{ws_a}/tasks/{task_a}", headers=auth_headers(b))
    assert r.status_code == 403

    # ids from one workspace do not resolve through another
    r = client.get(f"/workspaces/{ws_b}/projects/{project_a}", headers=auth_headers(b))
    assert r.status_code == 404

    r = client.post(f"/workspaces/{ws_b}/tasks/{task_a}/status", json={"status": "completed"}, headers=auth_headers(b))
    assert r.status_code == 404

    r = client.get("/workspaces", headers=auth_headers(b))
    assert [w["id"] for w in r.json()["workspaces"]] == [ws_b]
