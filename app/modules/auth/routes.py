from fastapi import APIRouter, Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse,
    PasswordResetRequest, OAuthProvider, OAuthUrlResponse, OAuthCallbackRequest
)
from app.modules.auth.service import AuthService
from app.core.dependencies import get_auth_service, get_current_user
from typing import Dict, Optional

router = APIRouter(prefix="/auth", tags=["auth"])

# Security scheme for JWT Bearer token
security = HTTPBearer()


def get_current_token(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    return credentials.credentials


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.post("/password-reset", status_code=202)
async def request_password_reset(
    reset_data: PasswordResetRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Send a password reset email"""
    return service.request_password_reset(reset_data)


@router.get("/oauth/{provider}", response_model=OAuthUrlResponse)
async def oauth_url(
    provider: OAuthProvider,
    redirect_to: Optional[str] = None,
    service: AuthService = Depends(get_auth_service)
):
    """Google or Facebook sign-in URL"""
    return service.oauth_url(provider, redirect_to)


@router.post("/oauth/callback", response_model=TokenResponse)
async def oauth_callback(
    callback: OAuthCallbackRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Complete an OAuth sign-in"""
    return service.oauth_callback(callback)


@router.get("/me")
async def get_me(current_user: Dict = Depends(get_current_user)):
    """Get current authenticated user"""
    return current_user
