import pytest

from padel_ladder.store import UniqueViolation


@pytest.mark.asyncio
async def test_register_player_starts_at_1000(client, store):
    response = await client.post("/players", json={"name": "  Ana Lopez ", "email": "ana@example.com"})

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["name"] == "Ana Lopez"
    assert body["email"] == "ana@example.com"
    assert (body["rating"], body["matches"], body["wins"]) == (1000, 0, 0)
    assert len(store.tables["players"]) == 1


@pytest.mark.asyncio
async def test_list_players_best_first(client, store):
    store.seed_player("Low", rating=950)
    store.seed_player("High", rating=1100)
    store.seed_player("Mid", rating=1000)

    response = await client.get("/players/")

    assert response.status_code == 200
    assert [p["name"] for p in response.json()] == ["High", "Mid", "Low"]


@pytest.mark.asyncio
async def test_list_players_store_failure_is_generic_500(client, store):
    store.fail("players", "select")

    response = await client.get("/players")

    assert response.status_code == 500
    assert response.json() == {"error": "Unable to retrieve player data"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "name,email,message",
    [
        ("ANA LOPEZ", "other@example.com", "A player with this name already exists"),
        ("Somebody", "Ana@Example.com", "A player with this email already exists"),
    ],
)
async def test_duplicates_are_rejected_case_insensitively(client, store, name, email, message):
    store.seed_player("Ana Lopez", email="ana@example.com")

    response = await client.post("/players", json={"name": name, "email": email})

    assert response.status_code == 400
    assert response.json() == {"error": message}
    assert len(store.tables["players"]) == 1
    assert ("players", "insert") not in store.calls


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload,message",
    [
        ({"name": "Ana"}, "Missing required fields"),
        ({"email": "ana@example.com"}, "Missing required fields"),
        ({"name": "A", "email": "ana@example.com"}, "Name must be between 2 and 50 characters"),
        ({"name": "x" * 51, "email": "ana@example.com"}, "Name must be between 2 and 50 characters"),
        ({"name": "   ", "email": "ana@example.com"}, "Name and email are required"),
        ({"name": "Ana", "email": "not-an-email"}, "Invalid email format"),
        ({"name": "Ana", "email": "ana@ example.com"}, "Invalid email format"),
    ],
)
async def test_invalid_registration(client, store, payload, message):
    response = await client.post("/players", json=payload)

    assert response.status_code == 400
    assert response.json() == {"error": message}
    assert store.tables["players"] == []


@pytest.mark.asyncio
async def test_unparseable_body_is_a_format_error(client):
    response = await client.post(
        "/players", content=b"{name: nope", headers={"content-type": "application/json"}
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request format"}


@pytest.mark.asyncio
async def test_unique_constraint_at_insert_is_409(client, store):
    async def racing_insert(table, rows):
        raise UniqueViolation("duplicate key value violates unique constraint")

    store.insert = racing_insert

    response = await client.post("/players", json={"name": "Ana", "email": "ana@example.com"})

    assert response.status_code == 409
    assert response.json() == {"error": "This player already exists in our system"}


@pytest.mark.asyncio
async def test_insert_failure_does_not_leak_store_detail(client, store):
    store.fail("players", "insert")

    response = await client.post("/players", json={"name": "Ana", "email": "ana@example.com"})

    assert response.status_code == 500
    assert response.json() == {"error": "Unable to add player at this time"}
    assert "boom" not in response.text


@pytest.mark.asyncio
async def test_duplicate_check_failure_is_500(client, store):
    store.fail("players", "select")

    response = await client.post("/players", json={"name": "Ana", "email": "ana@example.com"})

    assert response.status_code == 500
    assert response.json() == {"error": "Unable to validate player information"}
