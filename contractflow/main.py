import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from contractflow.core.config import settings
from contractflow.core.errors import AppError
from contractflow.core.logging import setup_logging
from contractflow.core.middleware import RequestLoggingMiddleware

# Routers
from contractflow.routers.health import router as health_router
from contractflow.routers.contract_parsing import router as contract_parsing_router
from contractflow.routers.file_uploads import router as file_uploads_router

# Supabase (singleton)
from contractflow.infra.supabase_client import get_supabase

logger = logging.getLogger("contractflow.boot")


def create_app() -> FastAPI:
    setup_logging(settings.LOG_LEVEL)
    app = FastAPI(title="ContractFlow Backend")

    # -------------------------------------------------
    # Middleware (last added runs first)
    # -------------------------------------------------
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.ALLOWED_ORIGIN],
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    # -------------------------------------------------
    # Startup
    # -------------------------------------------------
    @app.on_event("startup")
    def startup():
        # fail fast on missing Supabase settings
        app.state.sb = get_supabase()
        logger.info("[BOOT] Supabase client initialized")

    # -------------------------------------------------
    # Routers
    # -------------------------------------------------
    app.include_router(health_router, prefix="/api/v1/health", tags=["health"])
    app.include_router(contract_parsing_router, prefix="/api/v1", tags=["contract-parsing"])
    app.include_router(file_uploads_router, prefix="/api/v1", tags=["file-uploads"])

    return app


app = create_app()
