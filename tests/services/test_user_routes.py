"""User routes — registration, lookup, and acting-user edits."""


async def test_create_and_lookup(client):
    res = await client.post("/api/v1/users", json={"username": " dana "})
    assert res.status_code == 201
    assert res.json()["username"] == "dana"

    res = await client.get("/api/v1/users/dana")
    assert res.status_code == 200


async def test_duplicate_username(client, alice):
    res = await client.post("/api/v1/users", json={"username": "alice"})
    assert res.status_code == 400
    assert res.json()["error"]["kind"] == "bad_values"


async def test_unknown_username(client):
    res = await client.get("/api/v1/users/nobody")
    assert res.status_code == 404


async def test_rename_self(client, alice, as_user):
    res = await client.patch(
        "/api/v1/users", json={"username": "alicia"}, headers=as_user(alice),
    )
    assert res.status_code == 200
    assert res.json()["username"] == "alicia"


async def test_delete_self(client, alice, as_user):
    res = await client.delete("/api/v1/users", headers=as_user(alice))
    assert res.status_code == 200
    res = await client.get("/api/v1/users/alice")
    assert res.status_code == 404


async def test_delete_requires_identity(client):
    res = await client.delete("/api/v1/users")
    assert res.status_code == 401
