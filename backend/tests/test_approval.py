import pytest
from conftest import register, place_trade


@pytest.mark.asyncio
async def test_trade_approves_only_once(client, admin_headers):
    _, headers = await register(client, "alice")
    trade = await place_trade(client, headers)

    r = await client.patch(f"/api/admin/trades/{trade['id']}/approve", headers=admin_headers)
    assert r.status_code == 200, r.text
    assert r.json()["approvedBy"] is not None

    r = await client.patch(f"/api/admin/trades/{trade['id']}/approve", headers=admin_headers)
    assert r.status_code == 409, r.text
    assert r.json()["message"] == f"Trade {trade['id']} is approved"

    r = await client.patch(f"/api/admin/trades/{trade['id']}/reject", headers=admin_headers)
    assert r.status_code == 409, r.text


@pytest.mark.asyncio
async def test_trade_approval_does_not_touch_balance(client, admin_headers):
    _, headers = await register(client, "alice")
    before = (await client.get("/api/portfolio", headers=headers)).json()
    trade = await place_trade(client, headers)
    await client.patch(f"/api/admin/trades/{trade['id']}/approve", headers=admin_headers)
    await client.patch(f"/api/admin/trades/{trade['id']}/approve", headers=admin_headers)

    after = (await client.get("/api/portfolio", headers=headers)).json()
    assert after["totalBalance"] == before["totalBalance"]


@pytest.mark.asyncio
async def test_reject_trade_records_reason(client, admin_headers):
    _, headers = await register(client, "alice")
    trade = await place_trade(client, headers)
    r = await client.patch(f"/api/admin/trades/{trade['id']}/reject", headers=admin_headers,
                           json={"rejectionReason": "price out of range"})
    assert r.status_code == 200, r.text
    assert r.json()["adminApproval"] == "rejected"
    assert r.json()["status"] == "rejected"
    assert r.json()["rejectionReason"] == "price out of range"


@pytest.mark.asyncio
async def test_approve_unknown_trade_returns_404(client, admin_headers):
    r = await client.patch("/api/admin/trades/999/approve", headers=admin_headers)
    assert r.status_code == 404, r.text


@pytest.mark.asyncio
async def test_approval_requires_admin(client):
    _, headers = await register(client, "alice")
    trade = await place_trade(client, headers)
    r = await client.patch(f"/api/admin/trades/{trade['id']}/approve", headers=headers)
    assert r.status_code == 401, r.text


@pytest.mark.asyncio
async def test_pending_trades_list_includes_owner(client, admin_headers):
    _, headers = await register(client, "alice")
    trade = await place_trade(client, headers)
    r = await client.get("/api/admin/trades/pending", headers=admin_headers)
    assert r.status_code == 200, r.text
    assert r.json()[0]["id"] == trade["id"]
    assert r.json()[0]["username"] == "alice"
    assert r.json()[0]["email"] == "alice@example.com"


@pytest.mark.asyncio
async def test_bulk_approve_skips_foreign_and_unknown_trades(client, admin_headers):
    alice_id, alice = await register(client, "alice")
    _, bob = await register(client, "bob")
    t1 = await place_trade(client, alice)
    t2 = await place_trade(client, bob)
    t3 = await place_trade(client, alice)

    r = await client.post(f"/api/admin/user/{alice_id}/trades/approve", headers=admin_headers,
                          json={"tradeIds": [t1["id"], t2["id"], t3["id"], 999]})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["approvedCount"] == 2
    outcomes = {item["id"]: item["outcome"] for item in body["results"]}
    assert outcomes == {
        t1["id"]: "approved",
        t2["id"]: "not_found",
        t3["id"]: "approved",
        999: "not_found",
    }

    r = await client.get("/api/trades", headers=bob)
    assert r.json()[0]["adminApproval"] == "pending"


@pytest.mark.asyncio
async def test_bulk_approve_reports_already_decided_trades(client, admin_headers):
    alice_id, alice = await register(client, "alice")
    t1 = await place_trade(client, alice)
    await client.patch(f"/api/admin/trades/{t1['id']}/reject", headers=admin_headers)

    r = await client.post(f"/api/admin/users/{alice_id}/trades/approve", headers=admin_headers,
                          json={"tradeIds": [t1["id"]]})
    assert r.status_code == 200, r.text
    assert r.json()["approvedCount"] == 0
    assert r.json()["results"] == [{"id": t1["id"], "outcome": "not_pending"}]
