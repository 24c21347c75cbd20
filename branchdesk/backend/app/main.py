"""
BranchDesk - Main FastAPI Application
"""
import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import auth_router, branches_router, employees_router, inventory_router, sales_router
from app.config import settings
from app.services.session_store import BackendFactory, SessionStore

logger = logging.getLogger(__name__)


def create_app(backend_factory: Optional[BackendFactory] = None) -> FastAPI:
    """
    Build the application. backend_factory creates one AuthBackend per browser
    session (defaults to a Supabase client per session).
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Employees, inventory and branches for multi-branch businesses",
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )
    app.state.session_store = SessionStore(backend_factory)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy"}

    @app.get("/api/config")
    async def public_config():
        """Public config for the frontend. No secrets."""
        return {
            "app_name": settings.APP_NAME,
            "low_stock_threshold": settings.LOW_STOCK_THRESHOLD,
            "auth_timeout_seconds": settings.AUTH_RESOLUTION_TIMEOUT_SECONDS,
        }

    @app.on_event("startup")
    def log_configuration():
        """Log what is (not) configured so a stuck login is easy to diagnose."""
        logger.info(
            "Supabase: %s (SUPABASE_URL=%s, SUPABASE_KEY=%s); default profile role=%s, auto-create=%s",
            "configured" if settings.supabase_configured else "NOT CONFIGURED",
            "set" if settings.SUPABASE_URL else "empty",
            "set" if settings.SUPABASE_KEY else "empty",
            settings.DEFAULT_PROFILE_ROLE,
            settings.AUTO_CREATE_PROFILES,
        )
        if backend_factory is None and not settings.supabase_configured:
            logger.warning("Sign-in will fail until SUPABASE_URL and SUPABASE_KEY are set (e.g. in branchdesk/.env).")

    @app.on_event("shutdown")
    async def close_sessions():
        """Stop every controller and release its client."""
        await app.state.session_store.close_all()

    app.include_router(auth_router, prefix="/api", tags=["Authentication"])
    app.include_router(branches_router, prefix="/api/branches", tags=["Branches"])
    app.include_router(employees_router, prefix="/api/employees", tags=["Employees"])
    app.include_router(inventory_router, prefix="/api/inventory", tags=["Inventory"])
    app.include_router(sales_router, prefix="/api", tags=["Sales & Dashboard"])

    return app


app = create_app()
