import asyncio

from conftest import auth_headers, make_client, seed_user
from foodorder.auth import create_access_token


def test_register_is_idempotent(gateway):
    async def _run():
        async with make_client(gateway) as (client, session_maker):
            headers = auth_headers("auth0|lina")
            body = {"auth0Id": "auth0|lina", "email": "lina@example.com"}
            first = await client.post("/api/my/user", json=body, headers=headers)
            second = await client.post("/api/my/user", json=body, headers=headers)
            other_subject = await client.post(
                "/api/my/user",
                json={"auth0Id": "auth0|someone-else", "email": "x@example.com"},
                headers=headers,
            )
            return first, second, other_subject

    first, second, other_subject = asyncio.run(_run())
    assert first.status_code == 201
    assert first.json()["auth0Id"] == "auth0|lina"
    assert first.json()["email"] == "lina@example.com"
    assert second.status_code == 200
    assert second.content == b""
    assert other_subject.status_code == 401


def test_get_and_update_current_user(gateway):
    async def _run():
        async with make_client(gateway) as (client, session_maker):
            await seed_user(session_maker, "auth0|lina")
            headers = auth_headers("auth0|lina")
            updated = await client.put(
                "/api/my/user",
                json={"name": "Lina", "addressLine1": "5 Rue Larbi", "city": "Blida", "country": "Algeria"},
                headers=headers,
            )
            fetched = await client.get("/api/my/user", headers=headers)
            return updated, fetched

    updated, fetched = asyncio.run(_run())
    assert updated.status_code == 200
    assert fetched.json()["addressLine1"] == "5 Rue Larbi"
    assert fetched.json()["city"] == "Blida"


def test_update_requires_every_field(gateway):
    async def _run():
        async with make_client(gateway) as (client, session_maker):
            await seed_user(session_maker, "auth0|lina")
            return await client.put(
                "/api/my/user",
                json={"name": "Lina", "addressLine1": "", "city": "Blida", "country": "Algeria"},
                headers=auth_headers("auth0|lina"),
            )

    assert asyncio.run(_run()).status_code == 422


def test_token_checks(gateway):
    async def _run():
        async with make_client(gateway) as (client, session_maker):
            await seed_user(session_maker, "auth0|lina")
            missing = await client.get("/api/my/user")
            garbage = await client.get("/api/my/user", headers={"Authorization": "Bearer not-a-jwt"})
            expired = await client.get(
                "/api/my/user",
                headers={"Authorization": f"Bearer {create_access_token('auth0|lina', expires_minutes=-5)}"},
            )
            unregistered = await client.get("/api/my/user", headers=auth_headers("auth0|ghost"))
            return missing, garbage, expired, unregistered

    for resp in asyncio.run(_run()):
        assert resp.status_code == 401


def test_health(gateway):
    async def _run():
        async with make_client(gateway) as (client, _):
            return await client.get("/health")

    resp = asyncio.run(_run())
    assert resp.status_code == 200
    assert resp.json()["message"] == "health OK!"
    assert resp.json()["status"] == "operational"
