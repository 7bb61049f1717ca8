from typing import Optional

from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session

from recipeshare import config
from recipeshare.database import get_db
from recipeshare.routers.base import api_router
from recipeshare.schemas.auth import ChangePasswordRequest, LoginRequest, ProfileUpdate, RegisterRequest
from recipeshare.schemas.recipe import ApiResponse, RecipeSummary
from recipeshare.schemas.user import UserResponse
from recipeshare.services.auth_service import AuthService, safe_redirect
from recipeshare.session_guard import Identity, optional_user, require_user


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=config.SESSION_COOKIE_NAME,
        value=token,
        max_age=config.SESSION_TTL_HOURS * 3600,
        httponly=True,
        secure=config.IS_PRODUCTION,
        samesite="lax",
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(key=config.SESSION_COOKIE_NAME, path="/")


@api_router.post("/auth/register", status_code=201, response_model=ApiResponse)
def register_user(request: RegisterRequest, http_request: Request, response: Response,
                  db: Session = Depends(get_db)):
    service = AuthService(db)
    user = service.register_user(request)
    token, _ = service.start_session(user, http_request)
    set_session_cookie(response, token)
    return ApiResponse(
        success=True,
        message="Registration successful",
        user=UserResponse.from_db(user),
        token=token,
    )


@api_router.post("/auth/login", response_model=ApiResponse)
def login_user(request: LoginRequest, http_request: Request, response: Response,
               db: Session = Depends(get_db)):
    service = AuthService(db)
    user = service.login_user(request)
    token, _ = service.start_session(user, http_request)
    set_session_cookie(response, token)
    return ApiResponse(
        success=True,
        message="Login successful",
        user=UserResponse.from_db(user),
        token=token,
        redirect_url=safe_redirect(request.return_to),
    )


@api_router.post("/auth/logout", response_model=ApiResponse)
def logout_user(response: Response, db: Session = Depends(get_db),
                identity: Optional[Identity] = Depends(optional_user)):
    if identity is not None:
        AuthService(db).end_session(identity.session_id)
    clear_session_cookie(response)
    return ApiResponse(success=True, message="Logout successful")


@api_router.get("/auth/me", response_model=ApiResponse)
def get_me(db: Session = Depends(get_db), identity: Identity = Depends(require_user)):
    user = AuthService(db).get_user(identity.user_id)
    return ApiResponse(
        success=True,
        user=UserResponse.from_db(user),
        favorites=[RecipeSummary.from_db(r) for r in user.favorites],
    )


@api_router.put("/auth/profile", response_model=ApiResponse)
def update_profile(update: ProfileUpdate, db: Session = Depends(get_db),
                   identity: Identity = Depends(require_user)):
    user = AuthService(db).update_profile(identity.user_id, update)
    return ApiResponse(success=True, message="Profile updated successfully", user=UserResponse.from_db(user))


@api_router.put("/auth/password", response_model=ApiResponse)
def change_password(request: ChangePasswordRequest, db: Session = Depends(get_db),
                    identity: Identity = Depends(require_user)):
    AuthService(db).change_password(identity.user_id, request)
    return ApiResponse(success=True, message="Password changed successfully")


@api_router.get("/auth/check", response_model=ApiResponse)
def check_auth(identity: Optional[Identity] = Depends(optional_user)):
    return ApiResponse(
        success=True,
        is_logged_in=identity is not None,
        user_id=identity.user_id if identity else None,
        username=identity.username if identity else None,
    )
