from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from digital_library.api.dependencies import require_user
from digital_library.database import get_db
from digital_library.schemas.auth import (LoginResponse, RefreshTokenRequest,
                                          Token, UserLogin)
from digital_library.schemas.context import UserContext
from digital_library.schemas.users import UserCreate, UserResponse
from digital_library.services.auth_service import auth_service
from digital_library.services.user_service import user_service

router = APIRouter(tags=["Authentication"], prefix="/auth")


@router.post(
    "/register",
    response_model=LoginResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register new user",
    responses={
        201: {"description": "User created successfully"},
        409: {"description": "User with email already exists"},
    },
)
async def register(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    """Register a new reader account and log it in"""
    user = await user_service.create_user(user_data, db)
    access_token, refresh_token = auth_service.issue_tokens(user)
    return LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=LoginResponse, summary="User login")
async def login(credentials: UserLogin, db: AsyncSession = Depends(get_db)):
    """Authenticate user and return tokens"""
    user = await auth_service.authenticate_user(credentials.email, credentials.password, db)
    access_token, refresh_token = auth_service.issue_tokens(user)
    return LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        user=UserResponse.model_validate(user),
    )


@router.post("/refresh", response_model=Token, summary="Refresh access token")
async def refresh_token(request: RefreshTokenRequest, db: AsyncSession = Depends(get_db)):
    """Exchange a refresh token for a new access token (the refresh token is rotated)"""
    access_token, new_refresh_token = await auth_service.refresh_session(request.refresh_token, db)
    return Token(access_token=access_token, refresh_token=new_refresh_token)


@router.get("/me", response_model=UserResponse, summary="Current user")
async def me(user: UserContext = Depends(require_user), db: AsyncSession = Depends(get_db)):
    return UserResponse.model_validate(await user_service.get_user(user.user_id, db))
