from datetime import timedelta

from sqlalchemy import select

from app.auth.tokens import decode_access_token, hash_magic_token, now_utc
from app.models.auth_magic_link import AuthMagicLink
from app.models.user import User

def _request_magic_token(client, email: str = "magiclink@example.com") -> str:
    r = client.post("/auth/request-link", json={"email": email})
    assert r.status_code == 200, r.text
    token = r.json().get("token")
    assert token, "expected token to be returned in non-prod env"
    return token

def test_magic_link_issues_access_token(client, db_session):
    token = _request_magic_token(client, "Mixed.Case@Example.com")

    r = client.post("/auth/redeem", json={"token": token})
    assert r.status_code == 200, r.text
    claims = decode_access_token(r.json()["access_token"])

    user = db_session.scalar(select(User).where(User.email == "mixed.case@example.com"))
    assert user is not None
    assert claims["sub"] == str(user.id)

def test_magic_link_cannot_be_reused(client):
    token = _request_magic_token(client)

    r1 = client.post("/auth/redeem", json={"token": token})
    assert r1.status_code == 200, r1.text
    assert "access_token" in r1.json()

    r2 = client.post("/auth/redeem", json={"token": token})
    assert r2.status_code == 400, r2.text
    assert r2.json()["error"] == "validation_error"
    assert "used" in r2.json()["detail"].lower()

def test_magic_link_expires(client, db_session):
    token = _request_magic_token(client)
    token_hash = hash_magic_token(token)

    row = db_session.get(AuthMagicLink, token_hash)
    assert row is not None
    row.expires_at = now_utc() - timedelta(seconds=1)
    db_session.add(row)
    db_session.commit()

    r = client.post("/auth/redeem", json={"token": token})
    assert r.status_code == 400, r.text
    assert "expired" in r.json()["detail"].lower()

def test_unknown_magic_link(client):
    r = client.post("/auth/redeem", json={"token": "nope"})
    assert r.status_code == 400, r.text
    assert r.json()["detail"] == "invalid token"
