from typing import Optional
from fastapi import Depends, Request
from auth import SESSION_COOKIE, verify_session
from config import Settings
from errors import AuthError, ForbiddenError
from permissions import has_capability
from schemas import Identity
from services.audit import AuditTrail


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_audit_trail(request: Request) -> AuditTrail:
    return request.app.state.audit


def get_current_identity(
    request: Request,
    settings: Settings = Depends(get_settings)
) -> Identity:
    """Gate for protected routes: a valid session cookie or 401.

    Reads nothing but the cookie, so a rejected request never reaches the
    database.
    """
    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        raise AuthError()

    identity = verify_session(token, settings.secret_key)

    # Handlers read created_by from here
    request.state.identity = identity
    return identity


def get_optional_identity(
    request: Request,
    settings: Settings = Depends(get_settings)
) -> Optional[Identity]:
    try:
        return get_current_identity(request, settings)
    except AuthError:
        return None


def require_capability(capability: str):
    """Dependency factory for per-route authorization"""
    def capability_checker(identity: Identity = Depends(get_current_identity)) -> Identity:
        if not has_capability(identity.role, capability):
            raise ForbiddenError(f"Access denied. Required capability: {capability}")
        return identity
    return capability_checker
