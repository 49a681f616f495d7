"""Tests for tenant endpoints"""

import pytest


@pytest.mark.asyncio
async def test_create_tenant(client):
    response = await client.post("/tenants/", json={"code": "wood-co", "name": "Wood Co"})

    assert response.status_code == 201
    data = response.json()
    assert data["code"] == "wood-co"
    assert data["status"] == "active"

    fetched = await client.get(f"/tenants/{data['id']}")
    assert fetched.json() == data


@pytest.mark.asyncio
async def test_create_tenant_invalid_code(client):
    response = await client.post("/tenants/", json={"code": "Wood Co!", "name": "Wood Co"})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_tenant_duplicate_code(client, tenant):
    response = await client.post("/tenants/", json={"code": "wood-co", "name": "Another"})

    assert response.status_code == 409
    assert response.json()["error"] == "DUPLICATE_NAME"


@pytest.mark.asyncio
async def test_get_unknown_tenant(client):
    response = await client.get("/tenants/missing")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_status_changes(client, tenant):
    """
    GIVEN an active tenant
    WHEN it is archived and then reactivated
    THEN archiving succeeds and reactivation is refused with 409.
    """
    archived = await client.patch(f"/tenants/{tenant.id}/status", json={"new_status": "archived"})
    reactivated = await client.patch(f"/tenants/{tenant.id}/status", json={"new_status": "active"})

    assert archived.status_code == 200
    assert archived.json()["status"] == "archived"
    assert reactivated.status_code == 409
    assert reactivated.json()["error"] == "INVALID_STATE_TRANSITION"


@pytest.mark.asyncio
async def test_list_active_tenants(client, tenant, other_tenant):
    await client.patch(f"/tenants/{other_tenant.id}/status", json={"new_status": "suspended"})

    everyone = await client.get("/tenants/")
    active = await client.get("/tenants/", params={"active_only": True})

    assert [t["code"] for t in everyone.json()] == ["stone-co", "wood-co"]
    assert [t["code"] for t in active.json()] == ["wood-co"]
