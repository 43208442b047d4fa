import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings
from core.exceptions import AppError
from database import connect_db, close_db

# Routers
from routers import (
    auth, profiles, catalog, orders, balance, topups,
    verifications, vouchers, withdrawals, chat, admin,
)

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Rate limiter
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    enabled=settings.RATE_LIMIT_ENABLED,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await connect_db()
    logger.info("GetLife API started")
    yield
    # Shutdown
    await close_db()
    logger.info("GetLife API stopped")


app = FastAPI(
    title="GetLife API",
    description="Home services marketplace: orders, mitra payouts, balance ledger",
    version="1.0.0",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.DEBUG else settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Error bodies: always {"error": "..."} ────────────────────────────────────

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    fields = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        fields.append(f"{location}: {err.get('msg')}" if location else err.get("msg", ""))
    return JSONResponse(status_code=400, content={"error": "Invalid request: " + "; ".join(fields)})


@app.exception_handler(PyMongoError)
async def storage_error_handler(request: Request, exc: PyMongoError):
    logger.exception("Storage failure on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# Routers: public catalog
app.include_router(catalog.services_router, prefix="/api/services", tags=["Services"])
app.include_router(catalog.banners_router, prefix="/api/banners", tags=["Banners"])

# Routers: authenticated
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(profiles.router, prefix="/api/profile", tags=["Profiles"])
app.include_router(orders.router, prefix="/api/orders", tags=["Orders"])
app.include_router(balance.balance_router, prefix="/api/balance", tags=["Balance"])
app.include_router(balance.transactions_router, prefix="/api/balance-transactions", tags=["Balance"])
app.include_router(topups.topup_router, prefix="/api/topup", tags=["Top-ups"])
app.include_router(topups.requests_router, prefix="/api/topup-requests", tags=["Top-ups"])
app.include_router(verifications.router, prefix="/api/mitra-verifications", tags=["Mitra verification"])
app.include_router(vouchers.router, prefix="/api/vouchers", tags=["Vouchers"])
app.include_router(withdrawals.router, prefix="/api/withdrawals", tags=["Withdrawals"])
app.include_router(chat.router, prefix="/api/chat", tags=["Chat"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])
app.include_router(admin.mitra_router, prefix="/api/mitra", tags=["Admin"])


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok", "app": "getlife", "version": "1.0.0"}
