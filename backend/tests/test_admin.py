"""
Ember Ascent - Admin API Tests
User provisioning and impersonation
"""
import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from ember_ascent.core.config import settings
from ember_ascent.models.admin import AdminAuditLog, ImpersonationSession
from ember_ascent.models.user import Child, Profile

COOKIE = settings.IMPERSONATION_COOKIE_NAME


# ============================================================================
# User provisioning
# ============================================================================

@pytest.mark.asyncio
async def test_create_user_with_child(client: AsyncClient, factory, db_session):
    admin = await factory.admin()
    response = await client.post(
        "/api/admin/users/create",
        json={
            "parentEmail": "New.Parent@Example.com",
            "parentName": "New Parent",
            "childName": "Isla",
            "yearGroup": "4",
            "subscriptionTier": "ascent",
        },
        headers=factory.headers(admin),
    )
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["email"] == "new.parent@example.com"
    assert data["tempPassword"].startswith("Temp")

    user_id = uuid.UUID(data["userId"])
    profile = (await db_session.execute(select(Profile).where(Profile.id == user_id))).scalar_one()
    assert profile.subscription_tier == "ascent"
    assert profile.full_name == "New Parent"
    child = (await db_session.execute(select(Child).where(Child.parent_id == user_id))).scalar_one()
    assert child.name == "Isla"
    assert child.year_group == 4

    audit = (await db_session.execute(
        select(AdminAuditLog).where(AdminAuditLog.action == "user:create")
    )).scalar_one()
    assert audit.admin_id == admin.id
    assert "tempPassword" not in str(audit.details)

    login = await client.post("/api/auth/login", json={
        "email": "new.parent@example.com",
        "password": data["tempPassword"],
    })
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_create_user_duplicate_email(client: AsyncClient, factory):
    admin = await factory.admin()
    await factory.user(email="taken@example.com")

    response = await client.post(
        "/api/admin/users/create",
        json={"parentEmail": "taken@example.com", "childName": "Isla", "yearGroup": "5"},
        headers=factory.headers(admin),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "User with this email already exists"


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    {"parentEmail": "not-an-email", "childName": "Isla", "yearGroup": "5"},
    {"parentEmail": "a@example.com", "childName": "I", "yearGroup": "5"},
    {"parentEmail": "a@example.com", "childName": "Isla", "yearGroup": "7"},
    {"parentEmail": "a@example.com", "childName": "Isla", "yearGroup": "5", "subscriptionTier": "gold"},
])
async def test_create_user_validation(client: AsyncClient, factory, payload):
    admin = await factory.admin()
    response = await client.post(
        "/api/admin/users/create", json=payload, headers=factory.headers(admin)
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_user_requires_admin(client: AsyncClient, factory):
    parent = await factory.user()
    response = await client.post(
        "/api/admin/users/create",
        json={"parentEmail": "a@example.com", "childName": "Isla", "yearGroup": "5"},
        headers=factory.headers(parent),
    )
    assert response.status_code == 403


# ============================================================================
# Impersonation
# ============================================================================

@pytest.mark.asyncio
async def test_impersonation_lifecycle(client: AsyncClient, factory, db_session):
    admin = await factory.admin()
    parent = await factory.user(email="parent@example.com", full_name="Priya Parent")
    child = await factory.child(parent, name="Arjun")
    headers = factory.headers(admin)

    status = await client.get("/api/admin/impersonation", headers=headers)
    assert status.json() == {"active": False}

    start = await client.post(
        "/api/admin/impersonation",
        json={"userId": str(parent.id), "reason": "Support ticket 1182"},
        headers=headers,
    )
    assert start.status_code == 200
    assert start.json()["redirectTo"] == "/dashboard"
    assert COOKIE in start.cookies
    set_cookie = start.headers["set-cookie"].lower()
    assert "httponly" in set_cookie
    assert "samesite=lax" in set_cookie

    status = await client.get("/api/admin/impersonation", headers=headers)
    body = status.json()
    assert body["active"] is True
    assert body["targetEmail"] == "parent@example.com"
    assert body["targetName"] == "Priya Parent"
    assert body["reason"] == "Support ticket 1182"

    me = await client.get("/api/auth/me", headers=headers)
    assert me.json()["email"] == "parent@example.com"
    assert me.json()["impersonatedBy"] == str(admin.id)

    children = await client.get("/api/children", headers=headers)
    assert [c["id"] for c in children.json()] == [str(child.id)]

    end = await client.delete("/api/admin/impersonation", headers=headers)
    assert end.json() == {"success": True, "redirectTo": "/admin/users"}
    assert COOKIE not in client.cookies

    me = await client.get("/api/auth/me", headers=headers)
    assert me.json()["email"] == "admin@example.com"

    db_session.expire_all()
    session = (await db_session.execute(select(ImpersonationSession))).scalar_one()
    assert session.is_active is False
    assert session.ended_at is not None
    actions = (await db_session.execute(
        select(AdminAuditLog.action).order_by(AdminAuditLog.created_at)
    )).scalars().all()
    assert actions == ["impersonation:start", "impersonation:end"]


@pytest.mark.asyncio
async def test_starting_again_replaces_previous_session(client: AsyncClient, factory, db_session):
    admin = await factory.admin()
    first = await factory.user(email="first@example.com")
    second = await factory.user(email="second@example.com")
    headers = factory.headers(admin)

    await client.post("/api/admin/impersonation", json={"userId": str(first.id)}, headers=headers)
    await client.post("/api/admin/impersonation", json={"userId": str(second.id)}, headers=headers)

    second_id = second.id
    db_session.expire_all()
    active = (await db_session.execute(
        select(ImpersonationSession).where(ImpersonationSession.is_active.is_(True))
    )).scalars().all()
    assert [s.target_user_id for s in active] == [second_id]

    me = await client.get("/api/auth/me", headers=headers)
    assert me.json()["email"] == "second@example.com"


@pytest.mark.asyncio
async def test_cannot_impersonate_self(client: AsyncClient, factory):
    admin = await factory.admin()
    response = await client.post(
        "/api/admin/impersonation",
        json={"userId": str(admin.id)},
        headers=factory.headers(admin),
    )
    assert response.status_code == 400
    assert response.json()["code"] == "IMPERSONATION_FAILED"


@pytest.mark.asyncio
async def test_cannot_impersonate_another_admin(client: AsyncClient, factory):
    admin = await factory.admin()
    other = await factory.admin(email="other-admin@example.com", role="super_admin")
    response = await client.post(
        "/api/admin/impersonation",
        json={"userId": str(other.id)},
        headers=factory.headers(admin),
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_impersonate_unknown_user(client: AsyncClient, factory):
    admin = await factory.admin()
    response = await client.post(
        "/api/admin/impersonation",
        json={"userId": str(uuid.uuid4())},
        headers=factory.headers(admin),
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_end_without_cookie(client: AsyncClient, factory):
    admin = await factory.admin()
    response = await client.delete("/api/admin/impersonation", headers=factory.headers(admin))
    assert response.status_code == 200
    assert response.json() == {"success": True}


@pytest.mark.asyncio
async def test_cookie_is_ignored_for_non_admins(client: AsyncClient, factory):
    admin = await factory.admin()
    parent = await factory.user(email="parent@example.com")
    other = await factory.user(email="other@example.com")

    await client.post(
        "/api/admin/impersonation",
        json={"userId": str(parent.id)},
        headers=factory.headers(admin),
    )
    # The admin's cookie is still in the jar, but a regular user never impersonates
    me = await client.get("/api/auth/me", headers=factory.headers(other))
    assert me.json()["email"] == "other@example.com"
    assert me.json()["impersonatedBy"] is None
