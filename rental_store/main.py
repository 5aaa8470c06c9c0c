# rental_store/main.py
from contextlib import asynccontextmanager
import logging

from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI

from rental_store.core.config import get_settings
from rental_store.core.kv_storage import JsonFileStorage
from rental_store.database import create_db_and_tables
from rental_store.services.cart_store import CartStore

# Import models so SQLModel metadata is populated before create_all()
from rental_store.models import location as _location_models  # noqa: F401
from rental_store.models import booking as _booking_models  # noqa: F401

# Routers
from rental_store.routers.quotes import router as quotes_router
from rental_store.routers.cart import router as cart_router
from rental_store.routers.bookings import router as bookings_router
from rental_store.routers.notifications import router as notifications_router

settings = get_settings()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Verify DB connectivity and create tables.
      - Build the cart store on its durable slot and load it.

    Shutdown:
      - Drop the cart store; every mutation is already persisted.
    """
    logger.info("Startup: connecting to database...")
    try:
        create_db_and_tables()
        logger.info("Startup: DB connection OK, tables verified.")
    except Exception as e:
        logger.error(f"Startup: DB connection FAILED: {e}")
        raise

    cart_store = CartStore(
        JsonFileStorage(settings.CART_STORAGE_PATH),
        key=settings.CART_STORAGE_KEY,
    )
    cart_store.load()
    app.state.cart_store = cart_store
    logger.info(f"Startup: cart '{settings.CART_STORAGE_KEY}' loaded from {settings.CART_STORAGE_PATH}")

    yield

    app.state.cart_store = None
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.PROJECT_NAME or "Rental Store API",
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(quotes_router)
app.include_router(cart_router)
app.include_router(bookings_router)
app.include_router(notifications_router)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "rental-store-backend"}
