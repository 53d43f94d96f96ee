from decimal import Decimal
from unittest.mock import patch, AsyncMock

import pytest
from sqlalchemy import select

from conftest import register, add_crypto_address
from bitrader.core.errors import InvalidTransitionError
from bitrader.models.deposit import DepositRequest, DepositStatus
from bitrader.models.user import AdminUser
from bitrader.models.wallet import UserWallet
from bitrader.services import approval


def _priced(value):
    return patch("bitrader.services.deposits.usd_value", new=AsyncMock(return_value=value))


async def _submit(client, headers, crypto_type="BTC", amount=0.25):
    r = await client.post("/api/deposit-requests", headers=headers, json={
        "cryptoType": crypto_type,
        "amount": amount,
        "transactionHash": "0xabc",
    })
    return r


@pytest.mark.asyncio
async def test_deposit_requires_active_address(client):
    _, headers = await register(client, "alice")
    with _priced(Decimal("10000.00")):
        r = await _submit(client, headers, crypto_type="DOGE")
    assert r.status_code == 400, r.text
    assert r.json()["message"] == "Deposits in DOGE are not accepted"


@pytest.mark.asyncio
async def test_deposit_request_is_valued_at_submission(client, test_db):
    await add_crypto_address(test_db, "BTC")
    _, headers = await register(client, "alice")
    with _priced(Decimal("15000.00")):
        r = await _submit(client, headers)
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["status"] == "pending"
    assert body["usdValue"] == 15000.0
    assert body["cryptoType"] == "BTC"

    r = await client.get("/api/deposit-requests", headers=headers)
    assert [d["id"] for d in r.json()] == [body["id"]]


@pytest.mark.asyncio
async def test_deposit_without_price_is_valued_at_zero(client, test_db):
    await add_crypto_address(test_db, "BTC")
    _, headers = await register(client, "alice")
    with _priced(None):
        r = await _submit(client, headers)
    assert r.status_code == 201, r.text
    assert r.json()["usdValue"] == 0


@pytest.mark.asyncio
async def test_approving_deposit_credits_wallet_once(client, test_db, admin_headers):
    await add_crypto_address(test_db, "BTC")
    _, headers = await register(client, "alice")
    with _priced(Decimal("15000.00")):
        deposit = (await _submit(client, headers, amount=0.25)).json()

    r = await client.patch(f"/api/admin/deposit-requests/{deposit['id']}/approve",
                           headers=admin_headers, json={"notes": "confirmed on chain"})
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "approved"

    r = await client.patch(f"/api/admin/deposit-requests/{deposit['id']}/approve",
                           headers=admin_headers)
    assert r.status_code == 409, r.text

    with patch("bitrader.routers.wallet.get_usd_price", new=AsyncMock(return_value=None)):
        r = await client.get("/api/wallets", headers=headers)
    assert r.status_code == 200, r.text
    btc = next(w for w in r.json() if w["symbol"] == "BTC")
    assert btc["balance"] == 0.25
    assert btc["usdValue"] == 15000.0


@pytest.mark.asyncio
async def test_rejecting_deposit_requires_reason(client, test_db, admin_headers):
    await add_crypto_address(test_db, "BTC")
    _, headers = await register(client, "alice")
    with _priced(Decimal("15000.00")):
        deposit = (await _submit(client, headers)).json()

    for payload in ({}, {"rejectionReason": ""}, {"rejectionReason": "   "}):
        r = await client.patch(f"/api/admin/deposit-requests/{deposit['id']}/reject",
                               headers=admin_headers, json=payload)
        assert r.status_code == 400, r.text

    r = await client.patch(f"/api/admin/deposit-requests/{deposit['id']}/reject",
                           headers=admin_headers, json={"rejectionReason": "no such transaction"})
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "rejected"
    assert r.json()["rejectionReason"] == "no such transaction"

    r = await client.get("/api/admin/deposit-requests?status=rejected", headers=admin_headers)
    assert [d["id"] for d in r.json()] == [deposit["id"]]


@pytest.mark.asyncio
async def test_retired_address_stops_accepting_deposits(client, test_db, admin_headers):
    address_id = await add_crypto_address(test_db, "ETH")
    _, headers = await register(client, "alice")

    r = await client.get("/api/crypto-addresses", headers=headers)
    assert [a["symbol"] for a in r.json()] == ["ETH"]

    r = await client.delete(f"/api/admin/crypto-addresses/{address_id}", headers=admin_headers)
    assert r.status_code == 200, r.text

    r = await client.get("/api/crypto-addresses", headers=headers)
    assert r.json() == []
    with _priced(Decimal("100.00")):
        r = await _submit(client, headers, crypto_type="ETH")
    assert r.status_code == 400, r.text



@pytest.mark.asyncio
async def test_overlapping_deposit_approvals_credit_once(client, test_db, admin_headers):
    await add_crypto_address(test_db, "BTC")
    user_id, headers = await register(client, "alice")
    with _priced(Decimal("15000.00")):
        deposit_id = (await _submit(client, headers, amount=0.25)).json()["id"]

    async with test_db() as first, test_db() as second:
        first_admin = await first.scalar(select(AdminUser))
        second_admin = await second.scalar(select(AdminUser))
        # both reviewers have the request open while it is still pending
        for db in (first, second):
            seen = await db.get(DepositRequest, deposit_id)
            assert seen.status == DepositStatus.pending

        await approval.approve_deposit(first, deposit_id, first_admin)
        await first.commit()
        with pytest.raises(InvalidTransitionError):
            await approval.approve_deposit(second, deposit_id, second_admin)
        await second.rollback()

    async with test_db() as db:
        wallet = await db.scalar(
            select(UserWallet).where(UserWallet.user_id == user_id, UserWallet.symbol == "BTC")
        )
        assert wallet.balance == Decimal("0.25")
        assert wallet.usd_value == Decimal("15000.00")
