"""
HTTP layer tests through FastAPI's TestClient.

The engine dependency is overridden so requests run against the test
schema with the controllable clock.  Admin JWTs are minted directly;
only the login tests pay for a real password hash.
"""

import io

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from openpyxl import load_workbook

from conftest import OTHER_OWNER_ID, OWNER_ID
from core.security import create_access_token, hash_password
from database import get_db
from main import app
from models.user import User
from sharing.dependencies import get_engine
from sharing.engine import ShareEngine
from sharing.sql_store import SqlShareStore


def _bearer(user_id, username):
    token = create_access_token({"sub": username, "user_id": user_id, "role": "admin"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(db_session, policy, clock):
    def engine_override(db=Depends(get_db)):
        return ShareEngine(SqlShareStore(db), policy=policy, clock=clock)

    app.dependency_overrides[get_engine] = engine_override
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def alice():
    return _bearer(OWNER_ID, "alice")


@pytest.fixture
def bob():
    return _bearer(OTHER_OWNER_ID, "bob")


@pytest.fixture
def entry_ids(client, alice):
    ids = []
    for name in ("GitLab", "Grafana"):
        resp = client.post(
            "/entries",
            json={"service_name": name, "username": f"svc-{name.lower()}", "password": f"{name}-pw"},
            headers=alice,
        )
        assert resp.status_code == 201
        ids.append(resp.json()["id"])
    return ids


def _issue(client, headers, entry_ids, **extra):
    resp = client.post("/shares", json={"entry_ids": entry_ids, **extra}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


# ─── Auth ──────────────────────────────────────────────────────────────


class TestAuth:
    @pytest.fixture
    def carol(self, db_session):
        db_session.add(User(id=3, username="carol", password_hash=hash_password("correct horse"), role="admin"))
        db_session.commit()

    def test_login_and_me(self, client, carol):
        resp = client.post("/auth/login", json={"username": "carol", "password": "correct horse"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["token_type"] == "bearer"

        me = client.get("/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
        assert me.status_code == 200
        assert me.json()["username"] == "carol"

    def test_wrong_password(self, client, carol):
        resp = client.post("/auth/login", json={"username": "carol", "password": "nope"})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid username or password"

    def test_unknown_user_same_message(self, client):
        resp = client.post("/auth/login", json={"username": "mallory", "password": "x"})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid username or password"

    def test_admin_routes_need_token(self, client):
        assert client.get("/shares").status_code == 401
        assert client.get("/entries").status_code == 401

    def test_garbage_token(self, client):
        resp = client.get("/shares", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401


# ─── Entries ───────────────────────────────────────────────────────────


class TestEntries:
    def test_list_never_returns_secrets(self, client, alice, entry_ids):
        resp = client.get("/entries", headers=alice)
        assert resp.status_code == 200
        entries = resp.json()["entries"]
        assert {e["id"] for e in entries} == set(entry_ids)
        assert all("password" not in e and "secret" not in e for e in entries)

    def test_batch_creates_one_share_for_all(self, client, alice):
        resp = client.post(
            "/entries/batch",
            json={
                "services": [
                    {"service_name": "Jenkins", "username": "ci", "password": "j-pw"},
                    {"service_name": "Sentry", "username": "ops", "password": "s-pw",
                     "service_url": "https://sentry.internal"},
                ],
                "recipient_label": "on-call",
                "comment": "rotate monthly",
            },
            headers=alice,
        )
        assert resp.status_code == 201
        body = resp.json()
        assert len(body["entries"]) == 2

        shared = client.get(f"/shared/{body['share']['token']}").json()
        assert [s["password"] for s in shared["services"]] == ["j-pw", "s-pw"]
        assert shared["comment"] == "rotate monthly"

    def test_batch_without_share(self, client, alice):
        resp = client.post(
            "/entries/batch",
            json={"services": [{"service_name": "Jenkins", "username": "ci", "password": "pw"}], "share": False},
            headers=alice,
        )
        assert resp.status_code == 201
        assert resp.json()["share"] is None
        assert client.get("/shares", headers=alice).json()["shares"] == []

    def test_batch_empty_rejected(self, client, alice):
        resp = client.post("/entries/batch", json={"services": []}, headers=alice)
        assert resp.status_code == 400
        assert resp.json()["code"] == "validation_error"
        assert client.get("/entries", headers=alice).json()["entries"] == []

    def test_missing_password_rejected(self, client, alice):
        resp = client.post("/entries", json={"service_name": "x", "username": "y"}, headers=alice)
        assert resp.status_code == 422


# ─── Shares (admin) ────────────────────────────────────────────────────


class TestShares:
    def test_issue(self, client, alice, entry_ids, clock):
        body = _issue(client, alice, entry_ids, recipient_label="new hire")
        assert len(body["token"]) == 24
        assert body["expires_at"] is not None

    def test_issue_empty_rejected(self, client, alice):
        resp = client.post("/shares", json={"entry_ids": []}, headers=alice)
        assert resp.status_code == 400
        assert resp.json()["code"] == "validation_error"

    def test_issue_foreign_entries_rejected(self, client, bob, entry_ids):
        resp = client.post("/shares", json={"entry_ids": entry_ids}, headers=bob)
        assert resp.status_code == 400
        assert resp.json()["code"] == "validation_error"

    def test_list_reports_status(self, client, alice, entry_ids, clock):
        viewed = _issue(client, alice, entry_ids[:1])
        revoked = _issue(client, alice, entry_ids[1:])
        client.get(f"/shared/{viewed['token']}")
        client.delete(f"/shares/{revoked['id']}", headers=alice)

        shares = {s["id"]: s for s in client.get("/shares", headers=alice).json()["shares"]}
        assert shares[viewed["id"]]["status"] == "viewed"
        assert shares[revoked["id"]]["status"] == "revoked"

        clock.advance(hours=2)
        shares = {s["id"]: s for s in client.get("/shares", headers=alice).json()["shares"]}
        assert shares[viewed["id"]]["status"] == "expired"

    def test_list_shows_linked_entries(self, client, alice, entry_ids):
        share = _issue(client, alice, entry_ids)

        row = client.get("/shares", headers=alice).json()["shares"][0]
        assert row["id"] == share["id"]
        assert row["entries"] == [
            {"id": entry_ids[0], "service_name": "GitLab", "username": "svc-gitlab"},
            {"id": entry_ids[1], "service_name": "Grafana", "username": "svc-grafana"},
        ]

    def test_revoke(self, client, alice, entry_ids):
        share = _issue(client, alice, entry_ids)

        assert client.delete(f"/shares/{share['id']}", headers=alice).status_code == 204
        assert client.delete(f"/shares/{share['id']}", headers=alice).status_code == 204

        resp = client.get(f"/shared/{share['token']}")
        assert resp.status_code == 410
        assert resp.json()["code"] == "revoked"

    def test_revoke_foreign_share(self, client, alice, bob, entry_ids):
        share = _issue(client, alice, entry_ids)
        resp = client.delete(f"/shares/{share['id']}", headers=bob)
        assert resp.status_code == 403
        assert resp.json()["code"] == "forbidden"

    def test_revoke_unknown_share(self, client, alice):
        assert client.delete("/shares/999", headers=alice).status_code == 404

    def test_stats(self, client, alice, entry_ids):
        share = _issue(client, alice, entry_ids)
        client.get(f"/shared/{share['token']}")

        stats = client.get("/shares/stats", headers=alice).json()
        assert stats["active_count"] == 1
        assert stats["viewed_count"] == 1
        assert stats["expiring_soon_count"] == 0

    def test_logs(self, client, alice, entry_ids):
        share = _issue(client, alice, entry_ids, recipient_label="new hire")
        client.get(f"/shared/{share['token']}")

        logs = client.get("/shares/logs", headers=alice).json()["logs"]
        assert [log["action"] for log in logs[:2]] == ["viewed", "share-created"]
        assert logs[0]["service_name"] == "GitLab"
        assert logs[0]["recipient_label"] == "new hire"

    def test_logs_export(self, client, alice, entry_ids):
        share = _issue(client, alice, entry_ids)
        client.post(f"/shared/{share['token']}/confirm")

        resp = client.get("/shares/logs/export", headers=alice)
        assert resp.status_code == 200
        assert "share-activity.xlsx" in resp.headers["content-disposition"]

        ws = load_workbook(io.BytesIO(resp.content)).active
        rows = list(ws.iter_rows(values_only=True))
        assert rows[0][:3] == ("Time", "Action", "Service")
        actions = [row[1] for row in rows[1:]]
        assert actions[0] == "confirmed"
        assert actions.count("entry-created") == 2
        assert not any("pw" in str(cell) for row in rows for cell in row if cell)


# ─── Shared links (public) ─────────────────────────────────────────────


class TestSharedLink:
    def test_single_use(self, client, alice, entry_ids, clock):
        share = _issue(client, alice, entry_ids, comment="welcome")

        first = client.get(f"/shared/{share['token']}")
        assert first.status_code == 200
        body = first.json()
        assert body["one_time_link"] is True
        assert body["comment"] == "welcome"
        assert [s["password"] for s in body["services"]] == ["GitLab-pw", "Grafana-pw"]
        assert body["viewed_at"] is not None

        second = client.get(f"/shared/{share['token']}")
        assert second.status_code == 410
        assert second.json()["code"] == "already_consumed"

        clock.advance(hours=1, seconds=1)
        third = client.get(f"/shared/{share['token']}")
        assert third.json()["code"] == "expired_after_view"

    def test_unknown_token(self, client):
        resp = client.get("/shared/does-not-exist")
        assert resp.status_code == 404
        assert resp.json()["code"] == "not_found"

    def test_expired_before_view(self, client, alice, entry_ids, clock):
        share = _issue(client, alice, entry_ids)
        clock.advance(days=14, seconds=1)

        resp = client.get(f"/shared/{share['token']}")
        assert resp.status_code == 410
        assert resp.json()["code"] == "expired_before_view"

    def test_confirm(self, client, alice, entry_ids):
        share = _issue(client, alice, entry_ids)
        client.get(f"/shared/{share['token']}")

        resp = client.post(f"/shared/{share['token']}/confirm")
        assert resp.status_code == 200
        assert resp.json() == {"detail": "Link has been deactivated"}

        again = client.post(f"/shared/{share['token']}/confirm")
        assert again.status_code == 400
        assert again.json()["code"] == "already_inactive"

        logs = client.get("/shares/logs", headers=alice).json()["logs"]
        assert [log["action"] for log in logs].count("confirmed") == 1

    def test_confirm_unknown_token(self, client):
        assert client.post("/shared/nope/confirm").status_code == 404


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}
