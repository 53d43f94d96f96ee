from decimal import Decimal

import pytest
from conftest import register, place_trade
from bitrader.core.errors import InvalidTransitionError
from bitrader.models.trade import Trade, TradeStatus
from bitrader.services.ledger import get_portfolio
from bitrader.services.trading import close_trade


@pytest.mark.asyncio
async def test_placed_trade_is_listed_as_pending(client):
    _, headers = await register(client, "alice")
    trade = await place_trade(client, headers, symbol="BTC", quantity=1, price=100)

    r = await client.get("/api/trades", headers=headers)
    assert r.status_code == 200, r.text
    trades = r.json()
    assert len(trades) == 1
    assert trades[0]["id"] == trade["id"]
    assert trades[0]["adminApproval"] == "pending"
    assert trades[0]["status"] == "open"
    assert trades[0]["totalAmount"] == 100


@pytest.mark.asyncio
async def test_admin_approval_is_visible_to_owner(client, admin_headers):
    _, headers = await register(client, "alice")
    trade = await place_trade(client, headers, quantity=1, price=100)

    r = await client.patch(f"/api/admin/trades/{trade['id']}/approve", headers=admin_headers,
                           json={"notes": "ok"})
    assert r.status_code == 200, r.text

    r = await client.get("/api/trades", headers=headers)
    assert r.json()[0]["adminApproval"] == "approved"
    assert r.json()[0]["status"] == "approved"


@pytest.mark.asyncio
async def test_trade_side_accepts_legacy_type_field(client):
    _, headers = await register(client, "alice")
    r = await client.post("/api/trades", headers=headers, json={
        "symbol": "eth", "type": "sell", "quantity": 2, "price": 1500,
    })
    assert r.status_code == 201, r.text
    assert r.json()["side"] == "sell"
    assert r.json()["symbol"] == "ETH"


@pytest.mark.asyncio
async def test_trade_rejects_non_positive_quantity(client):
    _, headers = await register(client, "alice")
    r = await client.post("/api/trades", headers=headers, json={
        "symbol": "BTC", "side": "buy", "quantity": 0, "price": 100,
    })
    assert r.status_code == 400, r.text


@pytest.mark.asyncio
async def test_trades_are_scoped_to_owner(client):
    _, alice = await register(client, "alice")
    _, bob = await register(client, "bob")
    await place_trade(client, alice)

    r = await client.get("/api/trades", headers=bob)
    assert r.json() == []


@pytest.mark.asyncio
async def test_positions_only_include_approved_trades(client, admin_headers):
    _, headers = await register(client, "alice")
    approved = await place_trade(client, headers)
    await place_trade(client, headers)
    await client.patch(f"/api/admin/trades/{approved['id']}/approve", headers=admin_headers)

    r = await client.get("/api/trades/positions", headers=headers)
    assert r.status_code == 200, r.text
    assert [t["id"] for t in r.json()] == [approved["id"]]


@pytest.mark.asyncio
async def test_close_trade_realizes_profit(client, admin_headers):
    user_id, headers = await register(client, "alice")
    trade = await place_trade(client, headers)
    await client.patch(f"/api/admin/trades/{trade['id']}/approve", headers=admin_headers)
    r = await client.patch(f"/api/admin/trades/{trade['id']}/profit", headers=admin_headers,
                           json={"profitAmount": 250.5, "note": "closed at target"})
    assert r.status_code == 200, r.text
    before = (await client.get("/api/portfolio", headers=headers)).json()

    r = await client.patch(f"/api/trades/{trade['id']}/close", headers=headers)
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "closed"

    after = (await client.get("/api/portfolio", headers=headers)).json()
    assert after["totalBalance"] == pytest.approx(before["totalBalance"] + 250.5)
    assert after["totalProfitLoss"] == pytest.approx(before["totalProfitLoss"] + 250.5)

    r = await client.patch(f"/api/trades/{trade['id']}/close", headers=headers)
    assert r.status_code == 409, r.text


@pytest.mark.asyncio
async def test_close_pending_trade_returns_409(client):
    _, headers = await register(client, "alice")
    trade = await place_trade(client, headers)
    r = await client.patch(f"/api/trades/{trade['id']}/close", headers=headers)
    assert r.status_code == 409, r.text
    assert r.json()["message"] == f"Trade {trade['id']} is pending"


@pytest.mark.asyncio
async def test_close_someone_elses_trade_returns_404(client):
    _, alice = await register(client, "alice")
    _, bob = await register(client, "bob")
    trade = await place_trade(client, alice)
    r = await client.patch(f"/api/trades/{trade['id']}/close", headers=bob)
    assert r.status_code == 404, r.text


@pytest.mark.asyncio
async def test_overlapping_closes_realize_profit_once(client, test_db, admin_headers):
    user_id, headers = await register(client, "alice")
    trade = await place_trade(client, headers)
    await client.patch(f"/api/admin/trades/{trade['id']}/approve", headers=admin_headers)
    await client.patch(f"/api/admin/trades/{trade['id']}/profit", headers=admin_headers,
                       json={"profitAmount": 100})

    async with test_db() as first, test_db() as second:
        start = (await get_portfolio(first, user_id)).total_balance
        # both requests see the position as still open
        for db in (first, second):
            seen = await db.get(Trade, trade["id"])
            assert seen.status == TradeStatus.approved

        closed = await close_trade(first, user_id, trade["id"])
        await first.commit()
        assert closed.status == TradeStatus.closed
        with pytest.raises(InvalidTransitionError):
            await close_trade(second, user_id, trade["id"])
        await second.rollback()

    async with test_db() as db:
        portfolio = await get_portfolio(db, user_id)
        assert portfolio.total_balance == start + Decimal("100")
        assert portfolio.total_profit_loss == Decimal("100")


@pytest.mark.asyncio
async def test_profit_cannot_change_after_close(client, admin_headers):
    _, headers = await register(client, "alice")
    trade = await place_trade(client, headers)
    await client.patch(f"/api/admin/trades/{trade['id']}/approve", headers=admin_headers)
    r = await client.patch(f"/api/trades/{trade['id']}/close", headers=headers)
    assert r.status_code == 200, r.text

    r = await client.patch(f"/api/admin/trades/{trade['id']}/profit", headers=admin_headers,
                           json={"profitAmount": 500})
    assert r.status_code == 409, r.text

    r = await client.patch("/api/admin/trades/999/profit", headers=admin_headers,
                           json={"profitAmount": 500})
    assert r.status_code == 404, r.text
