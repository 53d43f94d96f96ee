import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from bitrader.database import Base, get_db
from bitrader.main import app
from bitrader.core.security import hash_admin_password, create_access_token, ADMIN_SCOPE
from bitrader.models.user import AdminUser
from bitrader.models.deposit import CryptoAddress

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin-password"


@pytest_asyncio.fixture
async def test_db():
    engine = create_async_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    SessionLocal = async_sessionmaker(engine, expire_on_commit=False)
    async def override_get_db():
        async with SessionLocal() as session:
            yield session
    app.dependency_overrides[get_db] = override_get_db
    yield SessionLocal
    app.dependency_overrides.clear()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def client(test_db):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def admin_headers(test_db):
    async with test_db() as db:
        admin = AdminUser(
            email=ADMIN_EMAIL,
            password_hash=hash_admin_password(ADMIN_PASSWORD),
            role="admin",
            is_active=True,
        )
        db.add(admin)
        await db.commit()
        token = create_access_token(admin.id, ADMIN_SCOPE)
    return {"Authorization": f"Bearer {token}"}


async def register(client, username="alice", password="password123"):
    """Register a user and return (user_id, auth headers)."""
    r = await client.post("/api/register", json={
        "username": username,
        "email": f"{username}@example.com",
        "password": password,
    })
    assert r.status_code == 201, r.text
    body = r.json()
    return body["user"]["id"], {"Authorization": f"Bearer {body['accessToken']}"}


async def place_trade(client, headers, symbol="BTC", side="buy", quantity=0.5, price=40000):
    r = await client.post("/api/trades", headers=headers, json={
        "symbol": symbol,
        "side": side,
        "quantity": quantity,
        "price": price,
    })
    assert r.status_code == 201, r.text
    return r.json()


async def add_crypto_address(SessionLocal, symbol="BTC"):
    async with SessionLocal() as db:
        address = CryptoAddress(
            symbol=symbol, name=symbol, address=f"{symbol.lower()}-receiving-address",
            network="mainnet", is_active=True,
        )
        db.add(address)
        await db.commit()
        return address.id
