"""
Google OAuth Routes

GET /auth/google - Redirect to Google consent screen
GET /auth/google/callback - Finish sign-in, redirect to frontend with token
"""

import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from hirepath.core.config import get_settings
from hirepath.core.errors import AccountConflict
from hirepath.core.logger import mask_token
from hirepath.services.auth_service import get_auth_service
from hirepath.services.google_oauth import (
    GoogleAuthProvider, GoogleOAuthConfigError, GoogleOAuthError
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Google OAuth"])

STATE_COOKIE = "oauth_state"
STATE_MAX_AGE = 10 * 60
AUTH_COOKIE = "auth_token"


def get_google_provider(request: Request) -> GoogleAuthProvider:
    """Dependency - the provider built at startup (see main.create_app)."""
    return request.app.state.google_provider


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=302)


@router.get("/google")
def google_login(provider: GoogleAuthProvider = Depends(get_google_provider)):
    """Start the Google sign-in flow."""
    state = secrets.token_urlsafe(16)
    try:
        url = provider.authorization_url(state)
    except GoogleOAuthConfigError as e:
        logger.error("Google sign-in unavailable: %s", e)
        return _redirect(provider.login_redirect(error="server_config"))

    logger.info("Starting Google OAuth flow")
    response = _redirect(url)
    response.set_cookie(
        STATE_COOKIE, state,
        max_age=STATE_MAX_AGE, httponly=True, samesite="lax",
        secure=not get_settings().is_development,
    )
    return response


@router.get("/google/callback")
def google_callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    provider: GoogleAuthProvider = Depends(get_google_provider)
):
    """
    Google redirects here after consent.

    On success the browser lands on {FRONTEND_URL}/login?token=...; on failure
    on {FRONTEND_URL}/login?error=<code> where code is one of auth_failed,
    account_exists, server_config.
    """
    if error or not code:
        logger.info("Google callback without code (error=%s)", error)
        return _redirect(provider.login_redirect(error="auth_failed"))

    expected_state = request.cookies.get(STATE_COOKIE)
    if not expected_state or not secrets.compare_digest(expected_state, state or ""):
        logger.warning("Google callback state mismatch")
        return _redirect(provider.login_redirect(error="auth_failed"))

    try:
        tokens = provider.exchange_code(code)
        access_token = tokens.get("access_token")
        if not access_token:
            raise GoogleOAuthError("Token response has no access_token")
        profile = provider.fetch_profile(access_token)
        session = get_auth_service().google_sign_in(profile)
    except GoogleOAuthConfigError as e:
        logger.error("Google sign-in unavailable: %s", e)
        return _redirect(provider.login_redirect(error="server_config"))
    except AccountConflict:
        return _redirect(provider.login_redirect(error="account_exists"))
    except GoogleOAuthError as e:
        logger.warning("Google sign-in failed: %s", e)
        return _redirect(provider.login_redirect(error="auth_failed"))

    settings = get_settings()
    token = session["token"]
    logger.info("Google sign-in complete, token %s", mask_token(token))

    response = _redirect(provider.login_redirect(token=token))
    response.set_cookie(
        AUTH_COOKIE, token,
        max_age=settings.jwt_expire_minutes * 60, httponly=True, samesite="lax",
        secure=not settings.is_development,
    )
    response.delete_cookie(STATE_COOKIE)
    return response
