from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine
from dotenv import load_dotenv
import logging

# Load environment variables from .env file FIRST
load_dotenv()

from config import Settings, configure_logging
from database import build_engine, create_db_and_tables
from errors import register_exception_handlers
from metrics import RequestMetrics
from rate_limit import limiter
from services.audit import AuditTrail
from routers import auth, doctors, products, investments, dashboard, billing, pharmacy, activity_logs, attendance, system
from middleware.request_logger import RequestLoggingMiddleware
from middleware.origin_guard import OriginGuardMiddleware
from middleware.body_limit import BodySizeLimitMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, engine: Optional[Engine] = None) -> FastAPI:
    """Build the API around one settings object and one engine"""
    settings = settings or Settings.from_env()
    configure_logging(settings)
    engine = engine or build_engine(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.migrate_on_start:
            create_db_and_tables(engine)
        logger.info(f"API ready ({settings.environment}, port {settings.port})")
        yield
        engine.dispose()

    app = FastAPI(
        title="Pharma Management API",
        description="API for doctor investments, products, bills and pharmacy stock",
        version="0.1.0",
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.audit = AuditTrail(engine)
    app.state.metrics = RequestMetrics()

    # Set up rate limiter
    limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    register_exception_handlers(app)

    # Added innermost first: logging -> origin guard -> CORS -> body limit -> routes
    app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.max_body_bytes)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_origin_regex=settings.cors_origin_regex,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["Content-Type", "X-Requested-With", "Accept", "Origin"],
    )
    app.add_middleware(
        OriginGuardMiddleware,
        allow_origins=settings.cors_origins,
        allow_origin_regex=settings.cors_origin_regex,
    )
    app.add_middleware(RequestLoggingMiddleware, metrics=app.state.metrics)

    # Include routers
    app.include_router(auth.router)
    app.include_router(doctors.router)
    app.include_router(products.router)
    app.include_router(investments.router)
    app.include_router(dashboard.router)
    app.include_router(billing.router)
    app.include_router(pharmacy.router)
    app.include_router(activity_logs.router)
    app.include_router(attendance.router)
    app.include_router(system.router)

    @app.get("/")
    def read_root():
        return {"message": "Welcome to the Pharma Management API"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=app.state.settings.port)
