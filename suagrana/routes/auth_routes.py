import logging
from typing import Optional
from fastapi import APIRouter, Body, Depends, Request, Response, status
from sqlalchemy.orm import Session

from suagrana.config import settings
from suagrana.database import get_db
from suagrana.dependencies import get_current_user
from suagrana.models.user import User
from suagrana.schemas.auth_schemas import (
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    ProfileResponse,
    ProfileUpdate,
    RefreshRequest,
    RegisterRequest,
    UserResponse,
)
from suagrana.schemas.common import ApiResponse
from suagrana.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter()


def set_auth_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    common = {"httponly": True, "secure": settings.COOKIE_SECURE, "samesite": "lax", "path": "/"}
    response.set_cookie(
        settings.ACCESS_TOKEN_COOKIE,
        access_token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        **common,
    )
    response.set_cookie(
        settings.REFRESH_TOKEN_COOKIE,
        refresh_token,
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        **common,
    )


def _auth_payload(service: AuthService, user: User, response: Response) -> AuthResponse:
    access_token, refresh_token = service.issue_tokens(user)
    set_auth_cookies(response, access_token, refresh_token)
    return AuthResponse(user=UserResponse.model_validate(user), access_token=access_token)


@router.post("/register", response_model=ApiResponse[AuthResponse], status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, response: Response, db: Session = Depends(get_db)):
    """
    Register a new user.

    - Creates a personal tenant owned by the user
    - Sets the access and refresh cookies
    - Returns 409 if the email is already registered
    """
    service = AuthService(db)
    user = service.register(data)
    return ApiResponse(data=_auth_payload(service, user, response), message="User registered successfully")


@router.post("/login", response_model=ApiResponse[AuthResponse])
def login(data: LoginRequest, response: Response, db: Session = Depends(get_db)):
    service = AuthService(db)
    user = service.authenticate(data)
    return ApiResponse(data=_auth_payload(service, user, response), message="Login successful")


@router.post("/refresh", response_model=ApiResponse[AuthResponse])
def refresh(
    request: Request,
    response: Response,
    data: Optional[RefreshRequest] = Body(None),
    db: Session = Depends(get_db),
):
    """Issue a new token pair from the refresh cookie or a refresh_token body field"""
    token = request.cookies.get(settings.REFRESH_TOKEN_COOKIE)
    if data and data.refresh_token:
        token = data.refresh_token
    service = AuthService(db)
    user = service.refresh(token)
    return ApiResponse(data=_auth_payload(service, user, response), message="Token refreshed")


@router.post("/logout", response_model=ApiResponse[None])
def logout(response: Response, user: User = Depends(get_current_user)):
    response.delete_cookie(settings.ACCESS_TOKEN_COOKIE, path="/")
    response.delete_cookie(settings.REFRESH_TOKEN_COOKIE, path="/")
    logger.info("User logged out user_id=%s", user.id)
    return ApiResponse(message="Logout successful")


@router.get("/me", response_model=ApiResponse[ProfileResponse])
def me(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    tenants = AuthService(db).list_tenants(user)
    return ApiResponse(data=ProfileResponse(user=UserResponse.model_validate(user), tenants=tenants))


@router.put("/profile", response_model=ApiResponse[UserResponse])
def update_profile(
    data: ProfileUpdate, user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    user = AuthService(db).update_profile(user, data)
    return ApiResponse(data=UserResponse.model_validate(user), message="Profile updated")


@router.put("/change-password", response_model=ApiResponse[None])
def change_password(
    data: ChangePasswordRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    """Returns 401 when the current password does not match"""
    AuthService(db).change_password(user, data)
    return ApiResponse(message="Password changed successfully")
