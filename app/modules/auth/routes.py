from fastapi import APIRouter, BackgroundTasks, Depends, Query
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse,
    OAuthResponse, PasswordResetRequest, PasswordUpdateRequest,
    EmailExistsResponse, CurrentUser
)
from app.modules.auth.service import AuthService
from app.core.dependencies import get_auth_service, get_current_token, get_current_user_id
from typing import Dict

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new freelancer or investor"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.get("/oauth/{provider}", response_model=OAuthResponse)
async def login_with_oauth(
    provider: str,
    service: AuthService = Depends(get_auth_service)
):
    """Get the provider URL to start OAuth sign-in"""
    return service.login_with_oauth(provider)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    current_user: Dict = Depends(get_current_user_id),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    service.logout(token, current_user["id"])
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=CurrentUser)
def get_current_user(
    background_tasks: BackgroundTasks,
    current_user: Dict = Depends(get_current_user_id),
    service: AuthService = Depends(get_auth_service),
):
    """
    Current user with profile fields. The first call after sign-in returns the
    session-only view (profile_loaded=false) and loads the profile in the background.
    """
    return service.get_current_user(current_user, background_tasks)


@router.post("/password-reset", status_code=202)
async def request_password_reset(
    request: PasswordResetRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Send a password reset email"""
    service.reset_password(request.email)
    return {"message": f"Password reset instructions have been sent to {request.email}"}


@router.post("/password-reset/confirm", status_code=200)
async def confirm_password_reset(
    request: PasswordUpdateRequest,
    access_token: str = Query(..., description="Token carried by the reset link"),
    service: AuthService = Depends(get_auth_service)
):
    """Set a new password using the access token from the reset link"""
    service.update_password(access_token, request.password)
    return {"message": "Password updated successfully"}


@router.get("/check-email", response_model=EmailExistsResponse)
async def check_email(
    email: str,
    service: AuthService = Depends(get_auth_service)
):
    """Check whether an account already uses this email"""
    return service.check_email_exists(email)
