import pytest
from conftest import register
from bitrader.services.algorithms import ensure_default_algorithms, DEFAULT_ALGORITHMS


async def _seed(test_db):
    async with test_db() as db:
        await ensure_default_algorithms(db)
        await db.commit()


@pytest.mark.asyncio
async def test_default_algorithms_are_seeded_once(test_db):
    async with test_db() as db:
        assert await ensure_default_algorithms(db) == len(DEFAULT_ALGORITHMS)
        await db.commit()
        assert await ensure_default_algorithms(db) == 0


@pytest.mark.asyncio
async def test_users_see_only_active_algorithms(client, test_db, admin_headers):
    await _seed(test_db)
    _, headers = await register(client, "alice")
    r = await client.post("/api/admin/algorithms", headers=admin_headers, json={
        "name": "Retired Scalper", "type": "crypto", "active": False,
    })
    assert r.status_code == 201, r.text

    r = await client.get("/api/algorithms", headers=headers)
    assert r.status_code == 200, r.text
    assert [a["type"] for a in r.json()] == ["forex", "gold", "stocks", "crypto"]

    r = await client.get("/api/admin/algorithms", headers=admin_headers)
    assert len(r.json()) == 5
    assert r.json()[-1]["active"] is False


@pytest.mark.asyncio
async def test_algorithms_require_login(client):
    r = await client.get("/api/algorithms")
    assert r.status_code == 401, r.text


@pytest.mark.asyncio
async def test_algorithm_creation_is_audited(client, admin_headers):
    r = await client.post("/api/admin/algorithms", headers=admin_headers, json={
        "name": "Gold Breakout", "type": "gold", "description": "XAU/USD breakout",
    })
    assert r.status_code == 201, r.text
    created = r.json()
    assert created["active"] is True

    r = await client.get("/api/admin/logs", headers=admin_headers)
    entry = next(e for e in r.json() if e["resource"] == "ALGORITHM")
    assert entry["action"] == "CREATE"
    assert entry["resourceId"] == str(created["id"])
    assert entry["details"] == {"name": "Gold Breakout", "type": "gold"}


@pytest.mark.asyncio
async def test_unknown_algorithm_type_is_rejected(client, admin_headers):
    r = await client.post("/api/admin/algorithms", headers=admin_headers, json={
        "name": "Bonds", "type": "bonds",
    })
    assert r.status_code == 400, r.text


@pytest.mark.asyncio
async def test_performance_is_recorded_and_filtered(client, test_db):
    await _seed(test_db)
    _, headers = await register(client, "alice")
    _, bob = await register(client, "bob")
    catalogue = (await client.get("/api/algorithms", headers=headers)).json()
    forex, gold = catalogue[0]["id"], catalogue[1]["id"]

    r = await client.post("/api/performance", headers=headers, json={
        "algorithmId": forex,
        "sharpeRatio": 1.85,
        "maxDrawdown": -4.2,
        "avgTradeDuration": 6.5,
        "profitFactor": 2.1,
        "totalTrades": 40,
        "winningTrades": 29,
    })
    assert r.status_code == 201, r.text
    assert r.json()["sharpeRatio"] == 1.85
    await client.post("/api/performance", headers=headers, json={"algorithmId": gold})

    r = await client.get("/api/performance", headers=headers)
    assert len(r.json()) == 2

    r = await client.get(f"/api/performance?algorithmId={forex}", headers=headers)
    assert [m["winningTrades"] for m in r.json()] == [29]

    r = await client.get("/api/performance", headers=bob)
    assert r.json() == []


@pytest.mark.asyncio
async def test_performance_for_unknown_algorithm_returns_404(client):
    _, headers = await register(client, "alice")
    r = await client.post("/api/performance", headers=headers, json={"algorithmId": 999})
    assert r.status_code == 404, r.text
    assert r.json()["message"] == "Algorithm 999 not found"


@pytest.mark.asyncio
async def test_winning_trades_cannot_exceed_total(client, test_db):
    await _seed(test_db)
    _, headers = await register(client, "alice")
    algorithm_id = (await client.get("/api/algorithms", headers=headers)).json()[0]["id"]
    r = await client.post("/api/performance", headers=headers, json={
        "algorithmId": algorithm_id, "totalTrades": 3, "winningTrades": 5,
    })
    assert r.status_code == 400, r.text
