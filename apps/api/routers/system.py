"""Health, diagnostics and metrics exposition"""
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from config import Settings, DEV_SECRET_KEY
from database import check_database
from dependencies import get_settings

router = APIRouter(tags=["System"])


@router.get("/api/health")
def health_check(request: Request):
    """Liveness plus a SELECT 1 against the pool"""
    timestamp = datetime.now(timezone.utc).isoformat()
    if check_database(request.app.state.engine):
        return {"ok": True, "database": "up", "timestamp": timestamp}
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"ok": False, "database": "down", "timestamp": timestamp},
    )


@router.get("/api/env")
def environment_info(settings: Settings = Depends(get_settings)):
    """Which settings are present, never their values"""
    return {
        "environment": settings.environment,
        "corsOrigins": settings.cors_origins,
        # The development fallback does not count as configured
        "hasSecretKey": bool(settings.secret_key) and settings.secret_key != DEV_SECRET_KEY,
        "hasDatabaseUrl": bool(settings.database_url),
        "usesSqlite": settings.use_sqlite,
    }


@router.get("/metrics")
def metrics(request: Request):
    request_metrics = request.app.state.metrics
    return Response(content=request_metrics.render(), media_type=request_metrics.content_type)
