from fastapi import APIRouter, Depends, status
from fhir_gateway.features.auth.schemas import (
    RegisterRequest,
    LoginRequest,
    RefreshTokenRequest,
    TokenResponse,
    UserResponse,
)
from fhir_gateway.features.auth.service import AuthService
from fhir_gateway.features.auth.dependencies import get_auth_service


router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    register_data: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Register a new user.

    - **email**: User's email address
    - **name**: Full name of the user
    - **password**: Password (min 6 chars)
    - **role**: CLINICIAN (default) or DATA_SCIENTIST
    """
    return await auth_service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Authenticate user and return access and refresh tokens.

    - **email**: User's email address
    - **password**: User's password
    """
    tokens = await auth_service.authenticate(login_data.email, login_data.password)

    return TokenResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
    )


@router.post("/refresh-token", response_model=TokenResponse)
async def refresh_token(
    request: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Generate new access and refresh tokens from a valid refresh token.

    - **refresh_token**: Refresh token returned by login
    """
    tokens = await auth_service.refresh(request.refresh_token)

    return TokenResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
    )
