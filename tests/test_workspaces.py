import uuid

from sqlalchemy import select

from app.models.invite import Invite
from app.models.membership import Member
from app.models.project import Project
from app.models.task import Task
from app.services.workspaces import slugify

def login(client, email: str) -> str:
    r = client.post("/auth/request-link", json={"email": email})
    assert r.status_code == 200, r.text
    token = r.json()["token"]

    r = client.post("/auth/redeem", json={"token": token})
    assert r.status_code == 200, r.text
    return r.json()["access_token"]

def auth(jwt: str) -> dict[str, str]:
    return {"authorization": f"bearer {jwt}"}

def test_slugify():
    assert slugify("  Acme Corp ") == "acme-corp"
    assert slugify("Déjà vu!") == "dj-vu"
    assert slugify("!!!") == "workspace"

def test_create_and_list_workspaces(client, db_session):
    owner = login(client, "owner@example.com")

    r = client.post("/workspaces", json={"name": " Acme Corp ", "description": "things"}, headers=auth(owner))
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["success"] is True
    assert body["workspace"]["name"] == "Acme Corp"
    assert body["workspace"]["slug"] == "acme-corp"
    ws = body["workspace"]["id"]

    r = client.get("/workspaces", headers=auth(owner))
    assert [w["id"] for w in r.json()["workspaces"]] == [ws]

    r = client.get(f"/workspaces/{ws}/members", headers=auth(owner))
    assert r.status_code == 200, r.text
    [member] = r.json()["members"]
    assert member["role"] == "owner"
    assert member["email"] == "owner@example.com"
    assert member["user_id"] == body["workspace"]["owner_id"]

def test_workspace_name_is_required(client):
    owner = login(client, "owner@example.com")

    r = client.post("/workspaces", json={"name": "   "}, headers=auth(owner))
    assert r.status_code == 400, r.text
    assert r.json()["error"] == "validation_error"

    r = client.post("/workspaces", json={}, headers=auth(owner))
    assert r.status_code == 400, r.text
    assert r.json()["success"] is False

def test_update_workspace_is_owner_only(client):
    owner = login(client, "owner@example.com")
    r = client.post("/workspaces", json={"name": "acme"}, headers=auth(owner))
    ws = r.json()["workspace"]["id"]

    r = client.post(f"/workspaces/{ws}/invites", json={"email": "admin@example.com"}, headers=auth(owner))
    admin = login(client, "admin@example.com")
    r = client.post("/invites/accept", json={"token": r.json()["token"]}, headers=auth(admin))
    admin_id = r.json()["member"]["user_id"]
    client.patch(f"/workspaces/{ws}/members/{admin_id}/admin", json={"is_admin": True}, headers=auth(owner))

    r = client.patch(f"/workspaces/{ws}", json={"name": "renamed"}, headers=auth(admin))
    assert r.status_code == 403, r.text

    r = client.patch(f"/workspaces/{ws}", json={"name": ""}, headers=auth(owner))
    assert r.status_code == 400, r.text

    r = client.patch(f"/workspaces/{ws}", json={"name": "renamed", "description": "  "}, headers=auth(owner))
    assert r.status_code == 200, r.text
    assert r.json()["workspace"]["name"] == "renamed"
    assert r.json()["workspace"]["description"] is None

    r = client.delete(f"/workspaces/{ws}", headers=auth(admin))
    assert r.status_code == 403, r.text

def test_delete_workspace_removes_everything(client, db_session):
    owner = login(client, "owner@example.com")
    r = client.post("/workspaces", json={"name": "acme"}, headers=auth(owner))
    ws = r.json()["workspace"]["id"]

    r = client.post(f"/workspaces/{ws}/projects", json={"title": "P"}, headers=auth(owner))
    project_id = r.json()["project"]["id"]
    r = client.post(f"/workspaces/{ws}/tasks", json={"title": "T", "project_id": project_id}, headers=auth(owner))
    assert r.status_code == 201, r.text
    r = client.post(f"/workspaces/{ws}/invites", json={"email": "late@example.com"}, headers=auth(owner))
    token = r.json()["token"]

    r = client.delete(f"/workspaces/{ws}", headers=auth(owner))
    assert r.status_code == 200, r.text
    assert r.json() == {"success": True}

    r = client.get(f"/workspaces/{ws}", headers=auth(owner))
    assert r.status_code == 404, r.text

    ws_id = uuid.UUID(ws)
    for model in (Member, Project, Task, Invite):
        assert db_session.scalars(select(model).where(model.workspace_id == ws_id)).all() == [], model

    r = client.get(f"/invites/{token}")
    assert r.status_code == 404, r.text

def test_errors_use_envelope(client):
    r = client.get("/workspaces")
    assert r.status_code == 401, r.text
    assert r.json() == {"success": False, "error": "unauthenticated", "detail": "missing bearer token"}

    r = client.get("/workspaces", headers=auth("garbage"))
    assert r.status_code == 401, r.text
    assert r.json()["detail"] == "invalid token"

    r = client.get("/no-such-route")
    assert r.status_code == 404, r.text
    assert r.json()["error"] == "not_found"
