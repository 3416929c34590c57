from typing import Optional
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select
from database import get_session, transaction, is_unique_violation
from models import User, Role
from schemas import UserRegister, UserLogin, UserResponse, Identity
from auth import get_password_hash, verify_password, create_session_token, set_session_cookie, clear_session_cookie
from config import Settings
from dependencies import get_settings, get_optional_identity
from errors import AuthError, ConflictError, ValidationError
from validators.password_validator import validate_password
from rate_limit import limiter, REGISTER_LIMIT, LOGIN_LIMIT
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def _start_session(response: Response, user: User, settings: Settings):
    identity = Identity(id=user.id, email=user.email, role=user.role)
    token = create_session_token(identity, settings.secret_key, settings.session_ttl_days)
    set_session_cookie(response, token, settings)


@router.post("/register", response_model=UserResponse)
@limiter.limit(REGISTER_LIMIT)
def register(
    request: Request,
    response: Response,
    user_data: UserRegister,
    settings: Settings = Depends(get_settings),
    session: Session = Depends(get_session)
):
    """Register a new user and start a session"""
    if not user_data.name or not user_data.email or not user_data.password:
        raise ValidationError("Missing fields")

    validate_password(user_data.password)

    new_user = User(
        name=user_data.name,
        email=user_data.email,
        password_hash=get_password_hash(user_data.password),
        role=Role.USER.value
    )

    # No pre-check: the unique index on email decides
    try:
        with transaction(session):
            session.add(new_user)
    except IntegrityError as e:
        if is_unique_violation(e):
            raise ConflictError("Email exists")
        raise
    session.refresh(new_user)

    _start_session(response, new_user, settings)
    logger.info(f"Registered user {new_user.id}")

    return UserResponse.model_validate(new_user)


@router.post("/login", response_model=UserResponse)
@limiter.limit(LOGIN_LIMIT)
def login(
    request: Request,
    response: Response,
    credentials: UserLogin,
    settings: Settings = Depends(get_settings),
    session: Session = Depends(get_session)
):
    """Login user"""
    user = session.exec(select(User).where(User.email == credentials.email)).first()

    # Same answer for unknown email and wrong password
    if not user or not verify_password(credentials.password, user.password_hash):
        raise AuthError("Invalid credentials")

    _start_session(response, user, settings)

    return UserResponse.model_validate(user)


@router.get("/me", response_model=Optional[UserResponse])
def get_current_user_info(
    identity: Optional[Identity] = Depends(get_optional_identity),
    session: Session = Depends(get_session)
):
    """Current user, or null without a valid session"""
    if identity is None:
        return None

    user = session.get(User, identity.id)
    if not user:
        return None

    return UserResponse.model_validate(user)


@router.post("/logout")
def logout(response: Response, settings: Settings = Depends(get_settings)):
    """Tell the browser to drop the session cookie"""
    clear_session_cookie(response, settings)
    return {"ok": True}
