"""Main FastAPI application module.

This module initializes the FastAPI application and registers all route handlers.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.logging_config import setup_logging
from config import (
    API_HOST,
    API_PORT,
    BOOTSTRAP_ADMIN_EMAIL,
    BOOTSTRAP_ADMIN_PASSWORD,
    CORS_ALLOWED_ORIGINS,
    STORE_BACKEND,
)
from api.routes import auth, dashboard, tickets, users
from core.dependencies import check_store_backend, get_notifier, get_record_store
from utils.user_manager import UserManager

# Setup logging
setup_logging()

logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"

# Initialize FastAPI application
app = FastAPI(
    title="CIRA API",
    description="Campus facility issue reporting: students report, class "
    "representatives review, admins resolve.",
    version=APP_VERSION,
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register route handlers
app.include_router(auth.router)
app.include_router(tickets.router)
app.include_router(dashboard.router)
app.include_router(users.router)


@app.on_event("startup")
def startup_tasks() -> None:
    """Validate configuration, create tables and seed the bootstrap admin."""
    backend = check_store_backend()
    # Builds the notifier now so a bad EMAIL_DELIVERY stops startup
    get_notifier()

    if backend == "sql":
        from core.database import init_db

        init_db()
    logger.info("Record store backend: %s", backend)

    if BOOTSTRAP_ADMIN_EMAIL and BOOTSTRAP_ADMIN_PASSWORD:
        store_gen = get_record_store()
        try:
            UserManager(next(store_gen)).ensure_admin(
                BOOTSTRAP_ADMIN_EMAIL, BOOTSTRAP_ADMIN_PASSWORD
            )
        finally:
            store_gen.close()


@app.get("/", summary="API root", tags=["Info"])
def root() -> dict:
    """API root, returns API information and documentation links."""
    return {
        "name": "CIRA API",
        "version": APP_VERSION,
        "store_backend": STORE_BACKEND,
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc",
        },
        "health": "/api/health",
    }


@app.get("/api/health", summary="Health check", tags=["Health"])
def health() -> dict:
    """Health check endpoint.

    Returns:
        Dictionary with status "ok".
    """
    return {"status": "ok"}


# --- Startup code for direct execution ---
if __name__ == "__main__":
    import uvicorn

    server_url = f"http://{API_HOST}:{API_PORT}"
    logger.info("Starting CIRA API at %s (docs: %s/docs)", server_url, server_url)

    # reload=True enables auto-reload on code changes
    uvicorn.run("app:app", host=API_HOST, port=API_PORT, reload=True)
