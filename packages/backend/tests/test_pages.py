"""Server-rendered page tests — landing, login/register forms, gated dashboard."""

import json
import re
import uuid

import pytest
from sqlalchemy.exc import OperationalError

from tasktracker.auth.jwt import create_access_token
from tasktracker.config import settings
from tasktracker.services.task_service import TaskService

from conftest import PASSWORD, make_client


def embedded_state(html: str) -> dict:
    match = re.search(
        r'<script type="application/json" id="initial-state">(.*?)</script>',
        html,
        re.S,
    )
    assert match, "dashboard should embed its initial state"
    return json.loads(match.group(1))


# ═══════════════════════════════════════════════════════════
# Landing / forms
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_landing_page(anon_client):
    r = await anon_client.get("/")
    assert r.status_code == 200
    assert "Task Manager" in r.text
    assert 'href="/login"' in r.text
    assert 'href="/register"' in r.text


@pytest.mark.asyncio
async def test_register_form_logs_in(anon_client):
    r = await anon_client.post(
        "/register",
        data={"name": "Ada", "email": "ada-form@example.com", "password": PASSWORD},
    )
    assert r.status_code == 303
    assert r.headers["location"] == "/dashboard"
    assert anon_client.cookies.get(settings.cookie_name)

    r = await anon_client.get("/dashboard")
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_register_form_rejects_bad_email(anon_client):
    r = await anon_client.post(
        "/register",
        data={"name": "Ada", "email": "nope", "password": PASSWORD},
    )
    assert r.status_code == 400
    assert "valid email" in r.text
    assert settings.cookie_name not in r.headers.get("set-cookie", "")


@pytest.mark.asyncio
async def test_register_form_duplicate_email(anon_client, client):
    r = await anon_client.post(
        "/register",
        data={"name": "Copy", "email": client.user["email"], "password": PASSWORD},
    )
    assert r.status_code == 409
    assert "already registered" in r.text


@pytest.mark.asyncio
async def test_login_form(anon_client, client):
    r = await anon_client.post(
        "/login", data={"email": client.user["email"], "password": PASSWORD}
    )
    assert r.status_code == 303
    assert r.headers["location"] == "/dashboard"
    cookie = r.headers["set-cookie"]
    assert "HttpOnly" in cookie
    assert "Path=/" in cookie


@pytest.mark.asyncio
async def test_login_form_wrong_password_is_generic(anon_client, client):
    wrong_pw = await anon_client.post(
        "/login", data={"email": client.user["email"], "password": "not-it-at-all"}
    )
    no_user = await anon_client.post(
        "/login", data={"email": "nobody@example.com", "password": "whatever"}
    )
    assert wrong_pw.status_code == no_user.status_code == 401
    assert "Invalid email or password" in wrong_pw.text
    assert "Invalid email or password" in no_user.text


# ═══════════════════════════════════════════════════════════
# Gated dashboard
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_dashboard_without_cookie_redirects(anon_client):
    r = await anon_client.get("/dashboard")
    assert r.status_code == 302
    assert r.headers["location"] == "/login"


@pytest.mark.asyncio
async def test_bad_and_expired_cookies_match_missing(app_db, client):
    user_id = client.user["id"]
    variants = {
        "missing": None,
        "garbage": "garbage",
        "expired": create_access_token(user_id, expires_minutes=-1),
        "unknown-user": create_access_token(str(uuid.uuid4())),
    }
    responses = {}
    for label, token in variants.items():
        async with make_client() as c:
            if token:
                c.cookies.set(settings.cookie_name, token)
            responses[label] = await c.get("/dashboard")

    baseline = responses["missing"]
    for label, r in responses.items():
        assert r.status_code == baseline.status_code == 302, label
        assert r.headers["location"] == baseline.headers["location"], label
        assert r.content == baseline.content, label


@pytest.mark.asyncio
async def test_dashboard_empty_state(client):
    r = await client.get("/dashboard")
    assert r.status_code == 200
    assert r.headers["cache-control"] == "no-store"
    assert "No tasks yet" in r.text

    state = embedded_state(r.text)
    assert state["tasks"] == []
    assert state["pendingTasks"] == 0
    assert state["completedTasks"] == 0
    assert state["user"]["email"] == client.user["email"]
    assert "passwordHash" not in state["user"]


@pytest.mark.asyncio
async def test_dashboard_initials_follow_profile_name(client):
    avatar = re.compile(r'id="avatar">\s*(\w+)\s*<')

    r = await client.get("/dashboard")
    assert avatar.search(r.text).group(1) == "AL"

    await client.put(
        "/api/profile", data={"name": "grace brewster hopper", "email": client.user["email"]}
    )
    r = await client.get("/dashboard")
    assert avatar.search(r.text).group(1) == "GBH"
    assert embedded_state(r.text)["user"]["avatarUrl"] is None


@pytest.mark.asyncio
async def test_dashboard_shows_only_own_tasks(client, other_client):
    await client.post("/api/tasks", json={"title": "Mine"})
    await other_client.post("/api/tasks", json={"title": "Theirs"})

    r = await client.get("/dashboard")
    state = embedded_state(r.text)
    assert [t["title"] for t in state["tasks"]] == ["Mine"]
    assert "Theirs" not in r.text


@pytest.mark.asyncio
async def test_dashboard_escapes_task_titles(client):
    await client.post("/api/tasks", json={"title": "</script><script>alert(1)</script>"})
    r = await client.get("/dashboard")
    assert "<script>alert(1)</script>" not in r.text
    assert embedded_state(r.text)["tasks"][0]["title"].startswith("</script>")


@pytest.mark.asyncio
async def test_dashboard_store_failure_is_server_error(client, monkeypatch):
    async def broken(self, user_id):
        raise OperationalError("SELECT", {}, Exception("db down"))

    monkeypatch.setattr(TaskService, "list_tasks", broken)

    r = await client.get("/dashboard")
    assert r.status_code == 503
    assert "location" not in r.headers
