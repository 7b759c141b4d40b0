import pytest
from httpx import AsyncClient

from config import ApplicationConfig
from tests.fixtures.http import establish_session, refresh


@pytest.mark.asyncio
async def test_successful_rotation(client: AsyncClient, users, test_data):
    """Presenting a fresh refresh token returns its successor"""
    tenant_id = test_data.tenant_id("acme")
    established = await establish_session(client, tenant_id, users["alice"].id)

    response = await refresh(client, tenant_id, established["refresh_token"])

    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "Bearer"
    assert data["refresh_token"] != established["refresh_token"]
    assert data["session_id"] == established["session_id"]
    assert data["family_id"] == established["family_id"]
    assert len(data["access_token"]) > 0


@pytest.mark.asyncio
async def test_replayed_token_kills_family(client: AsyncClient, users, test_data):
    """A consumed token presented again revokes the successor as well"""
    tenant_id = test_data.tenant_id("acme")
    established = await establish_session(client, tenant_id, users["alice"].id)
    rotated = (await refresh(client, tenant_id, established["refresh_token"])).json()

    replay = await refresh(client, tenant_id, established["refresh_token"])
    successor = await refresh(client, tenant_id, rotated["refresh_token"])

    assert replay.status_code == 401
    assert successor.status_code == 401
    assert replay.json() == successor.json()


@pytest.mark.asyncio
async def test_rejections_are_indistinguishable(client: AsyncClient, users, test_data):
    """Reuse, garbage and foreign-tenant tokens all produce the same body"""
    acme = test_data.tenant_id("acme")
    globex = test_data.tenant_id("globex")
    established = await establish_session(client, acme, users["alice"].id)
    await refresh(client, acme, established["refresh_token"])

    responses = [
        await refresh(client, acme, established["refresh_token"]),
        await refresh(client, acme, "garbage"),
        await refresh(client, globex, established["refresh_token"]),
    ]

    for response in responses:
        assert response.status_code == 401
        assert response.json() == {
            "error": {"code": "INVALID_TOKEN", "message": "Invalid refresh token"}
        }


@pytest.mark.asyncio
async def test_refresh_requires_tenant_header(client: AsyncClient):
    response = await client.post("/tokens/refresh", json={"refresh_token": "x"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "TENANT_REQUIRED"


@pytest.mark.asyncio
async def test_refresh_rejects_empty_token(client: AsyncClient, test_data):
    response = await client.post(
        "/tokens/refresh",
        json={"refresh_token": ""},
        headers={"X-Tenant-ID": str(test_data.tenant_id("acme"))},
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_bound_token_needs_proof_header(client: AsyncClient, users, test_data):
    tenant_id = test_data.tenant_id("acme")
    established = await establish_session(
        client, tenant_id, users["bob"].id, cnf_jkt="thumbprint-a"
    )

    missing = await refresh(client, tenant_id, established["refresh_token"])
    wrong = await refresh(
        client, tenant_id, established["refresh_token"], **{"X-Proof-JKT": "thumbprint-b"}
    )
    right = await refresh(
        client, tenant_id, established["refresh_token"], **{"X-Proof-JKT": "thumbprint-a"}
    )

    assert missing.status_code == 401
    assert wrong.status_code == 401
    assert right.status_code == 200


@pytest.mark.asyncio
async def test_born_expired_successor_is_plain_401(
    client: AsyncClient, users, test_data, monkeypatch
):
    tenant_id = test_data.tenant_id("acme")
    established = await establish_session(client, tenant_id, users["alice"].id)
    monkeypatch.setattr(ApplicationConfig, "REFRESH_TOKEN_TTL_SECONDS", 0)

    response = await refresh(client, tenant_id, established["refresh_token"])

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_TOKEN"
