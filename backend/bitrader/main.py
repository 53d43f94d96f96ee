import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import HTTPException, RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from sqlalchemy import select
from starlette.exceptions import HTTPException as StarletteHTTPException

from bitrader.config import settings
from bitrader.database import AsyncSessionLocal
from bitrader.core.errors import BitraderError
from bitrader.core.redis import get_redis, close_redis
from bitrader.core.security import hash_admin_password
from bitrader.models.user import AdminUser
from bitrader.routers import auth, trades, wallet, admin, algorithms
from bitrader.services.algorithms import ensure_default_algorithms

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


async def ensure_bootstrap_admin() -> None:
    """Create the ADMIN_EMAIL account on first start if it does not exist."""
    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        return
    email = settings.ADMIN_EMAIL.strip().lower()
    async with AsyncSessionLocal() as db:
        if await db.scalar(select(AdminUser).where(AdminUser.email == email)):
            return
        db.add(AdminUser(
            email=email,
            password_hash=hash_admin_password(settings.ADMIN_PASSWORD),
            role="super_admin",
            is_active=True,
        ))
        await db.commit()
    logger.info("Bootstrap admin %s created", email)


async def seed_algorithms() -> None:
    async with AsyncSessionLocal() as db:
        if await ensure_default_algorithms(db):
            await db.commit()


@asynccontextmanager
async def lifespan(app: FastAPI):
    await get_redis()
    await ensure_bootstrap_admin()
    await seed_algorithms()
    yield
    await close_redis()

app = FastAPI(title="Bitrader API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BitraderError)
async def bitrader_error_handler(request: Request, exc: BitraderError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid request", "errors": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


app.include_router(auth.router)
app.include_router(trades.router)
app.include_router(wallet.router)
app.include_router(admin.router)
app.include_router(algorithms.router)

@app.get("/health")
async def health():
    return {"status": "ok"}
