# app/main.py
from contextlib import asynccontextmanager
import logging

from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.core.config import get_settings
from app.core.exceptions import (
    CartError,
    CartItemNotFound,
    GatewayError,
    InvalidQuantity,
    NotAuthenticated,
)
from app.database import create_db_and_tables

# Import models so SQLModel metadata is populated before create_all()
from app.models import user as _user_models  # noqa: F401
from app.models import cart as _cart_models  # noqa: F401

# Routers
from app.routers.cart import router as cart_router

settings = get_settings()

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Provision cart tables and unique constraints when DATABASE_URL is set.
    """
    logger.info("Startup: provisioning cart schema...")
    try:
        if create_db_and_tables():
            logger.info("Startup: DB connection OK, tables verified.")
        else:
            logger.info("Startup: DATABASE_URL not set, skipping schema provisioning.")
    except Exception as e:
        logger.error(f"Startup: DB connection FAILED: {e}")
        raise
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Cart error mapping ---
# Anything not listed (e.g. ProfileNotFound) is a generic failure.
ERROR_STATUS: dict[type[CartError], int] = {
    NotAuthenticated: status.HTTP_401_UNAUTHORIZED,
    InvalidQuantity: status.HTTP_422_UNPROCESSABLE_ENTITY,
    CartItemNotFound: status.HTTP_404_NOT_FOUND,
    GatewayError: status.HTTP_502_BAD_GATEWAY,
}


@app.exception_handler(CartError)
async def cart_error_handler(request: Request, exc: CartError):
    code = ERROR_STATUS.get(type(exc))
    if code is None:
        logger.error("Cart operation failed: %r", exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Cart operation failed"},
        )
    return JSONResponse(status_code=code, content={"detail": exc.message})


# Versioned API prefix, e.g. /api/v1
app.include_router(cart_router, prefix=settings.API_V1_STR)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "storefront-cart"}
