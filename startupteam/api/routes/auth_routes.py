"""
Authentication Routes

POST /auth/register - Register new user (founder or member)
POST /auth/login - Login and get access + refresh tokens
POST /auth/refresh - Exchange refresh token for a new pair
GET /auth/me - Get current user info
POST /auth/forgot-password - Issue password reset token
POST /auth/reset-password - Set new password with reset token
GET /auth/oauth/{provider} - Redirect to Google / LinkedIn
GET /auth/oauth/{provider}/callback - OAuth callback, redirects to frontend with tokens
"""

import secrets
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse

from startupteam.api.deps import get_identity_service, get_oauth_linker
from startupteam.core.auth import get_current_user
from startupteam.core.config import get_settings
from startupteam.core.exceptions import AuthProviderError, InvalidToken, NotFound
from startupteam.core.tokens import TokenService, get_token_service
from startupteam.services.identity_service import IdentityService
from startupteam.services.oauth_service import OAuthLinker
from startupteam.schemas.schemas import (
    RegisterRequest, LoginRequest, RefreshRequest, ForgotPasswordRequest, ResetPasswordRequest,
    TokenResponse, UserResponse, ForgotPasswordResponse, MessageResponse
)

router = APIRouter(prefix="/auth", tags=["Authentication"])

OAUTH_STATE_COOKIE = "oauth_state"


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(
    request: RegisterRequest,
    identity: IdentityService = Depends(get_identity_service),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Register a new user account.

    The matching (empty) founder or member profile is created with it.
    """
    user = identity.register(
        name=request.name,
        email=request.email,
        password=request.password,
        role=request.role.value,
        phone=request.phone,
    )
    pair = tokens.issue_token_pair(user["id"])
    return TokenResponse(access_token=pair.access_token, refresh_token=pair.refresh_token, user=UserResponse(**user))


@router.post("/login", response_model=TokenResponse)
async def login(
    request: LoginRequest,
    identity: IdentityService = Depends(get_identity_service),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Login and receive access + refresh tokens.

    Include token in requests: Authorization: Bearer <access_token>
    """
    user = identity.authenticate(request.email, request.password)
    pair = tokens.issue_token_pair(user["id"])
    return TokenResponse(access_token=pair.access_token, refresh_token=pair.refresh_token, user=UserResponse(**user))


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    request: RefreshRequest,
    identity: IdentityService = Depends(get_identity_service),
    tokens: TokenService = Depends(get_token_service),
):
    """Get a fresh token pair. Only refresh tokens are accepted here."""
    payload = tokens.verify_refresh_token(request.refresh_token)
    try:
        user = identity.get_by_id(payload["sub"])
    except NotFound:
        raise InvalidToken("Invalid refresh token")
    pair = tokens.issue_token_pair(user["id"])
    return TokenResponse(access_token=pair.access_token, refresh_token=pair.refresh_token, user=UserResponse(**user))


@router.get("/me", response_model=UserResponse)
async def get_me(
    user: dict = Depends(get_current_user),
    identity: IdentityService = Depends(get_identity_service),
):
    """Get current authenticated user's info."""
    return UserResponse(**identity.get_by_id(user["id"]))


@router.post("/forgot-password", response_model=ForgotPasswordResponse)
async def forgot_password(
    request: ForgotPasswordRequest,
    identity: IdentityService = Depends(get_identity_service),
):
    """
    Issue a password reset token.

    The answer is the same whether or not the email exists. The raw token is
    never returned unless EXPOSE_RESET_TOKEN is set for local development.
    """
    raw_token = identity.request_password_reset(request.email)
    return ForgotPasswordResponse(
        message="If an account exists for this email, a reset link has been sent.",
        reset_token=raw_token if get_settings().expose_reset_token else None,
    )


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    request: ResetPasswordRequest,
    identity: IdentityService = Depends(get_identity_service),
):
    """Set a new password using the token from /forgot-password (single use)."""
    identity.reset_password(request.token, request.password)
    return MessageResponse(message="Password reset successfully. Please login.")


@router.get("/oauth/{provider}")
async def oauth_start(provider: str, linker: OAuthLinker = Depends(get_oauth_linker)):
    """Redirect to the provider's consent screen."""
    state = secrets.token_urlsafe(24)
    response = RedirectResponse(linker.get_provider(provider).authorization_url(state))
    response.set_cookie(OAUTH_STATE_COOKIE, state, max_age=600, httponly=True, samesite="lax")
    return response


@router.get("/oauth/{provider}/callback")
async def oauth_callback(
    provider: str,
    request: Request,
    code: str = Query(...),
    state: str = Query(...),
    linker: OAuthLinker = Depends(get_oauth_linker),
):
    """
    Finish OAuth login and hand the tokens to the frontend.

    Tokens travel in the URL fragment so they never reach server logs.
    """
    expected = request.cookies.get(OAUTH_STATE_COOKIE)
    if not expected or not secrets.compare_digest(expected, state):
        raise AuthProviderError("OAuth state mismatch, please try again")

    user, pair = linker.login(provider, code)
    fragment = urlencode({
        "access_token": pair.access_token,
        "refresh_token": pair.refresh_token,
        "role": user["role"],
    })
    response = RedirectResponse(f"{get_settings().frontend_url}/pages/oauth-callback.html#{fragment}")
    response.delete_cookie(OAUTH_STATE_COOKIE)
    return response
