import pytest
from httpx import AsyncClient
from uuid import uuid4

from tests.fixtures.http import establish_session, refresh


@pytest.fixture
def acme_admin(admin_headers, test_data):
    return {**admin_headers, "X-Tenant-ID": str(test_data.tenant_id("acme"))}


@pytest.mark.asyncio
async def test_inspect_family(client: AsyncClient, users, test_data, acme_admin):
    tenant_id = test_data.tenant_id("acme")
    established = await establish_session(client, tenant_id, users["alice"].id)
    await refresh(client, tenant_id, established["refresh_token"])

    response = await client.get(
        f"/admin/families/{established['family_id']}", headers=acme_admin
    )

    assert response.status_code == 200
    data = response.json()
    assert data["session_id"] == established["session_id"]
    assert [node["state"] for node in data["tokens"]] == ["used", "active"]
    assert data["tokens"][1]["parent_id"] == data["tokens"][0]["id"]
    assert "jti" not in data["tokens"][0]


@pytest.mark.asyncio
async def test_revoke_family_twice(client: AsyncClient, users, test_data, acme_admin):
    tenant_id = test_data.tenant_id("acme")
    established = await establish_session(client, tenant_id, users["alice"].id)
    rotated = (await refresh(client, tenant_id, established["refresh_token"])).json()

    first = await client.post(
        f"/admin/families/{established['family_id']}/revoke",
        json={"reason": "incident-42"},
        headers=acme_admin,
    )
    second = await client.post(
        f"/admin/families/{established['family_id']}/revoke",
        json={},
        headers=acme_admin,
    )

    assert first.json()["revoked_count"] == 2
    assert second.json()["revoked_count"] == 0
    assert (await refresh(client, tenant_id, rotated["refresh_token"])).status_code == 401

    family = await client.get(
        f"/admin/families/{established['family_id']}", headers=acme_admin
    )
    assert {node["revoked_reason"] for node in family.json()["tokens"]} == {"incident-42"}


@pytest.mark.asyncio
async def test_unknown_family(client: AsyncClient, acme_admin):
    response = await client.get(f"/admin/families/{uuid4()}", headers=acme_admin)

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "FAMILY_NOT_FOUND"


@pytest.mark.asyncio
async def test_family_hidden_from_other_tenant(
    client: AsyncClient, users, test_data, admin_headers
):
    established = await establish_session(
        client, test_data.tenant_id("acme"), users["alice"].id
    )

    response = await client.get(
        f"/admin/families/{established['family_id']}",
        headers={**admin_headers, "X-Tenant-ID": str(test_data.tenant_id("globex"))},
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_admin_routes_require_key(client: AsyncClient, test_data):
    response = await client.get(
        "/admin/audit-events",
        headers={
            "X-Tenant-ID": str(test_data.tenant_id("acme")),
            "X-Admin-API-Key": "wrong",
        },
    )

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_API_KEY"


@pytest.mark.asyncio
async def test_audit_trail_records_reuse(client: AsyncClient, users, test_data, acme_admin):
    tenant_id = test_data.tenant_id("acme")
    established = await establish_session(client, tenant_id, users["alice"].id)
    await refresh(client, tenant_id, established["refresh_token"])
    await refresh(client, tenant_id, established["refresh_token"])

    response = await client.get("/admin/audit-events", headers=acme_admin)

    assert response.status_code == 200
    actions = [event["action"] for event in response.json()["events"]]
    assert actions == ["token_reuse_detected", "token_rotated", "session_established"]
    assert all(
        event["family_id"] == established["family_id"]
        for event in response.json()["events"]
    )


@pytest.mark.asyncio
async def test_audit_trail_pagination(client: AsyncClient, users, test_data, acme_admin):
    tenant_id = test_data.tenant_id("acme")
    for _ in range(3):
        await establish_session(client, tenant_id, users["alice"].id)

    first = await client.get(
        "/admin/audit-events", params={"limit": 2}, headers=acme_admin
    )
    cursor = first.json()["next_cursor"]
    second = await client.get(
        "/admin/audit-events",
        params={"limit": 2, "cursor": cursor},
        headers=acme_admin,
    )

    assert len(first.json()["events"]) == 2
    assert cursor is not None
    assert len(second.json()["events"]) == 1
    assert second.json()["next_cursor"] is None
