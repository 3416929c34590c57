from datetime import datetime, timedelta, timezone
from fastapi import Response
from jose import JWTError, jwt
from config import Settings
from errors import AuthError
from schemas import Identity
import bcrypt
import uuid

ALGORITHM = "HS256"
SESSION_COOKIE = "token"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash using bcrypt directly"""
    try:
        return bcrypt.checkpw(
            plain_password.encode('utf-8'),
            hashed_password.encode('utf-8')
        )
    except (TypeError, ValueError):
        return False


def get_password_hash(password: str) -> str:
    """Generate a salted password hash using bcrypt directly"""
    return bcrypt.hashpw(
        password.encode('utf-8'),
        bcrypt.gensalt()
    ).decode('utf-8')


def create_session_token(identity: Identity, secret_key: str, ttl_days: int = 7) -> str:
    """Sign the identity claims with a fixed expiry.

    Every token gets its own JTI so two logins never produce the same string.
    """
    expire = datetime.now(timezone.utc) + timedelta(days=ttl_days)
    claims = {
        "sub": str(identity.id),
        "email": identity.email,
        "role": identity.role,
        "exp": expire,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(claims, secret_key, algorithm=ALGORITHM)


def verify_session(token: str, secret_key: str) -> Identity:
    """Check signature and expiry and return the embedded claims.

    No database round trip: the claims are trusted as of issuance, so a role
    change only shows up once the token is reissued. Expired and malformed
    tokens fail the same way.
    """
    if not token:
        raise AuthError()
    try:
        payload = jwt.decode(token, secret_key, algorithms=[ALGORITHM])
        return Identity(id=int(payload["sub"]), email=payload["email"], role=payload["role"])
    except (JWTError, KeyError, TypeError, ValueError):
        raise AuthError()


def set_session_cookie(response: Response, token: str, settings: Settings):
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        max_age=settings.session_ttl_days * 24 * 60 * 60,
        path="/",
        domain=settings.cookie_domain,
        secure=settings.is_production,
        httponly=True,
        samesite="lax",
    )


def clear_session_cookie(response: Response, settings: Settings):
    response.delete_cookie(
        key=SESSION_COOKIE,
        path="/",
        domain=settings.cookie_domain,
        secure=settings.is_production,
        httponly=True,
        samesite="lax",
    )
