# Application entrypoint: configures middleware, startup routines, and API routers.
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import config
from .db import Database
from .errors import register_error_handlers
from .redis_client import reset_redis
from .routes.auth import router as auth_router
from .routes.inquiries import router as inquiries_router
from .routes.properties import router as properties_router
from .routes.wishlist import router as wishlist_router

logger = logging.getLogger("uninest.main")

app = FastAPI(title="UniNest API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)


@app.on_event("startup")
def on_startup() -> None:
    # Fail fast when production runs without a signing secret
    config.jwt_secret()
    if config.using_dev_jwt_secret():
        logger.warning("UNINEST_JWT_SECRET is not set; using the development signing secret")

    database = Database()
    # For local SQLite, auto-create tables; production DBs rely on Alembic migrations.
    if database.is_sqlite:
        database.create_all()
    app.state.database = database


@app.on_event("shutdown")
def on_shutdown() -> None:
    database = getattr(app.state, "database", None)
    if database is not None:
        database.dispose()
    reset_redis()


# Simple liveness endpoint for container orchestrators and uptime checks
@app.get("/healthz")
def healthz() -> dict:
    return {"status": "ok"}


# Mount application routers
app.include_router(auth_router, prefix="/api", tags=["auth"])
app.include_router(properties_router, prefix="/api", tags=["properties"])
app.include_router(inquiries_router, prefix="/api", tags=["inquiries"])
app.include_router(wishlist_router, prefix="/api", tags=["wishlist"])
