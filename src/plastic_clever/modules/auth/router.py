"""Authentication router."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from plastic_clever.core.activity_log import ActivityType, log_user_activity
from plastic_clever.core.auth import CurrentUser, get_current_user
from plastic_clever.core.database import get_db
from plastic_clever.core.rate_limit import (
    RATE_LIMIT_LOGIN,
    RATE_LIMIT_REGISTER,
    client_ip,
    enforce_rate_limit,
)
from plastic_clever.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)
from plastic_clever.modules.auth.schemas import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    RefreshRequest,
    RegisterRequest,
    SchoolMembership,
    TokenResponse,
    UserResponse,
)
from plastic_clever.modules.schools.repository import SchoolRepository
from plastic_clever.modules.users.models import User
from plastic_clever.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

router = APIRouter()


def _issue_tokens(user: User) -> TokenResponse:
    additional_claims = {
        "email": user.email,
        "role": user.role.value,
        "name": user.full_name,
    }
    return TokenResponse(
        access_token=create_access_token(subject=str(user.id), additional_claims=additional_claims),
        refresh_token=create_refresh_token(subject=str(user.id)),
    )


def _invalid_credentials() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={
            "error": "INVALID_CREDENTIALS",
            "message": "Invalid email or password.",
        },
    )


@router.post("/register", response_model=LoginResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """
    Create a teacher account and sign it in.

    Raises:
        HTTPException 409: Email already registered
        HTTPException 429: Too many registration attempts
    """
    await enforce_rate_limit(f"register:{client_ip(request)}", *RATE_LIMIT_REGISTER)

    if await UserRepository.email_exists(db, data.email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "error": "EMAIL_EXISTS",
                "message": "An account with this email already exists.",
            },
        )

    user = await UserRepository.create(
        db,
        email=data.email,
        password_hash=hash_password(data.password),
        first_name=data.first_name,
        last_name=data.last_name,
        preferred_language=data.preferred_language,
    )
    await db.commit()
    await db.refresh(user)

    await log_user_activity(
        db,
        user_id=user.id,
        user_email=user.email,
        action_type=ActivityType.REGISTER,
        request=request,
    )

    tokens = _issue_tokens(user)
    logger.info(f"User registered: {user.id}")
    return LoginResponse(**tokens.model_dump(), user=UserResponse.model_validate(user))


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """
    Authenticate user and return JWT tokens.

    Raises:
        HTTPException 401: Invalid credentials
        HTTPException 403: Account inactive
        HTTPException 429: Too many login attempts
    """
    await enforce_rate_limit(f"login:{client_ip(request)}", *RATE_LIMIT_LOGIN)

    user = await UserRepository.get_by_email(db, credentials.email)
    if not user:
        logger.warning("Login attempt for unknown email")
        raise _invalid_credentials()

    if not verify_password(credentials.password, user.password_hash):
        logger.warning(f"Invalid password for user: {user.id}")
        raise _invalid_credentials()

    if not user.is_active:
        logger.warning(f"Login attempt for inactive account: {user.id}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "ACCOUNT_INACTIVE",
                "message": "Your account has been deactivated.",
            },
        )

    await UserRepository.touch_last_login(db, user)
    await log_user_activity(
        db,
        user_id=user.id,
        user_email=user.email,
        action_type=ActivityType.LOGIN,
        request=request,
    )

    tokens = _issue_tokens(user)
    logger.info(f"User logged in: {user.id} (role: {user.role.value})")
    return LoginResponse(**tokens.model_dump(), user=UserResponse.model_validate(user))


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    data: RefreshRequest,
    db: AsyncSession = Depends(get_db),
) -> TokenResponse:
    """Exchange a refresh token for a new token pair."""
    payload = decode_token(data.refresh_token)
    if not payload or payload.get("type") != "refresh" or not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "INVALID_TOKEN",
                "message": "Invalid or expired refresh token.",
            },
        )

    user = await UserRepository.get_by_id(db, payload["sub"])
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "INVALID_TOKEN",
                "message": "Invalid or expired refresh token.",
            },
        )
    return _issue_tokens(user)


@router.get("/me", response_model=MeResponse)
async def me(
    db: AsyncSession = Depends(get_db),
    current: CurrentUser = Depends(get_current_user),
) -> MeResponse:
    """The signed-in user and their school memberships."""
    user = await UserRepository.get_by_id(db, current.id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "USER_NOT_FOUND", "message": "User not found."},
        )

    memberships = await SchoolRepository.get_user_memberships(db, user.id)
    return MeResponse(
        user=UserResponse.model_validate(user),
        schools=[
            SchoolMembership(
                school_id=membership.school_id,
                school_name=membership.school.name,
                role=membership.role,
                is_verified=membership.is_verified,
            )
            for membership in memberships
            if membership.school is not None
        ],
    )
