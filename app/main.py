# app/main.py

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
import sys

# Import your core modules
from app.core.database import test_connection, init_db, AsyncSessionLocal
from app.core.config import settings
from app.core.exceptions import PersistenceError
from app.core.seeding_logic import seed_all
from app.services.permission_service import DatabaseBackend, PermissionStore
from app.services.ui_builder_service import UIBuilderStore

# Routers
from app.api.endpoints import (
    auth as auth_router,
    permissions as permissions_router,
    sidebar as sidebar_router,
    role_modules as role_modules_router,
    system_modules as system_modules_router,
    ui_builder as ui_builder_router,
    logs as logs_router,
)

# ------------------------------------------------------------
# LOGURU CONFIGURATION
# ------------------------------------------------------------
logger.remove()
logger.add(
    sys.stdout,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
           "<level>{level}</level> | "
           "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
           "<level>{message}</level>",
    colorize=True,
    backtrace=True,
    diagnose=settings.ENV != "prod",
)

# ------------------------------------------------------------
# FASTAPI APP INIT
# ------------------------------------------------------------
app = FastAPI(
    title="SIP Access Control",
    version="1.0.0",
    description="Role permissions, module configuration and sidebar layout service for the SIP platform.",
)

# Process-wide stores, loaded at startup (or lazily on first request)
app.state.permission_store = None
app.state.ui_builder_store = None


# ------------------------------------------------------------
# CORS CONFIGURATION
# ------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Simulate-Role", "X-Simulate-User"],
)


# ------------------------------------------------------------
# ERROR HANDLERS
# ------------------------------------------------------------
@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    # In-memory state already changed; the client should retry the save
    logger.error(f"Persistence failure on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=503, content={"detail": str(exc)})


# ------------------------------------------------------------
# REGISTER ROUTERS
# ------------------------------------------------------------
app.include_router(auth_router.router)
# sidebar routes share the /permissions prefix; include them first so
# /permissions/sidebar/... is not shadowed
app.include_router(sidebar_router.router)
app.include_router(permissions_router.router)
app.include_router(role_modules_router.router)
app.include_router(system_modules_router.router)
app.include_router(ui_builder_router.router)
app.include_router(logs_router.router)


# ------------------------------------------------------------
# APPLICATION STARTUP EVENTS
# ------------------------------------------------------------
@app.on_event("startup")
async def on_startup():
    logger.info("Starting SIP Access Control...")

    # 1) Database connection test
    try:
        await test_connection()
        logger.success("Database connection established.")
    except Exception:
        logger.exception("Startup aborted: Database connection failed.")
        return

    # 2) Initialize database tables
    try:
        await init_db()
        logger.success("Database tables ready.")
    except Exception as e:
        logger.warning(f"Table initialization encountered an issue: {e}")

    # 3) Seed module catalog + Super Admin
    try:
        await seed_all()
    except Exception:
        logger.exception("Seeding failed.")

    # 4) Load the snapshot stores (migrations run here)
    backend = DatabaseBackend(AsyncSessionLocal)
    app.state.permission_store = await PermissionStore(backend).load()
    app.state.ui_builder_store = await UIBuilderStore(backend).load()

    logger.success("Backend startup completed successfully.\n")


# ------------------------------------------------------------
# ROOT HEALTH CHECK
# ------------------------------------------------------------
@app.get("/", tags=["System"])
async def root():
    return {
        "status": "ok",
        "service": "SIP Access Control",
        "version": app.version,
        "message": "Backend running successfully",
    }
