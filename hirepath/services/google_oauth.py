"""
Google OAuth provider.

Holds the client credentials and URLs for the authorization-code flow. One
instance is built at startup and handed to the routes (see main.create_app),
so nothing about OAuth lives in module-level state.
"""

import logging
from typing import Optional
from urllib.parse import urlencode

import requests
from pydantic import BaseModel

from hirepath.core.config import Settings

logger = logging.getLogger(__name__)

GOOGLE_OAUTH_AUTHORIZE = 'https://accounts.google.com/o/oauth2/v2/auth'
GOOGLE_OAUTH_TOKEN = 'https://oauth2.googleapis.com/token'
GOOGLE_USERINFO = 'https://www.googleapis.com/oauth2/v2/userinfo'

LOGIN_SCOPES = ['openid', 'email', 'profile']
REQUEST_TIMEOUT = 10


class GoogleOAuthConfigError(RuntimeError):
    """Raised when required Google OAuth credentials are missing."""

    def __init__(self, missing_vars):
        joined = ', '.join(missing_vars)
        super().__init__(f"Google sign-in is not configured. Set {joined} in .env (or the environment).")
        self.missing_vars = missing_vars


class GoogleOAuthError(RuntimeError):
    """Raised when Google rejects the code exchange or the profile request."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class GoogleProfile(BaseModel):
    """The subset of the Google user profile HirePath links to an account."""
    id: str
    email: str
    name: str = ""
    picture: Optional[str] = None


class GoogleAuthProvider:
    """Google OAuth client for the sign-in flow."""

    def __init__(self, client_id: str, client_secret: str, callback_url: str, frontend_url: str):
        self.client_id = (client_id or '').strip()
        self.client_secret = (client_secret or '').strip()
        self.callback_url = callback_url
        self.frontend_url = frontend_url.rstrip('/')

    @classmethod
    def from_settings(cls, settings: Settings) -> "GoogleAuthProvider":
        return cls(
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
            callback_url=settings.google_callback_url,
            frontend_url=settings.frontend_url,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def _require_credentials(self):
        missing = []
        if not self.client_id:
            missing.append('GOOGLE_CLIENT_ID')
        if not self.client_secret:
            missing.append('GOOGLE_CLIENT_SECRET')
        if missing:
            raise GoogleOAuthConfigError(missing)

    def authorization_url(self, state: Optional[str] = None) -> str:
        """Consent-screen URL the browser is redirected to."""
        self._require_credentials()
        params = {
            'client_id': self.client_id,
            'redirect_uri': self.callback_url,
            'response_type': 'code',
            'scope': ' '.join(LOGIN_SCOPES),
            'prompt': 'select_account',
        }
        if state:
            params['state'] = state
        return GOOGLE_OAUTH_AUTHORIZE + '?' + urlencode(params)

    def exchange_code(self, code: str) -> dict:
        """Trade the callback's authorization code for tokens."""
        self._require_credentials()
        payload = {
            'code': code,
            'client_id': self.client_id,
            'client_secret': self.client_secret,
            'redirect_uri': self.callback_url,
            'grant_type': 'authorization_code',
        }
        try:
            resp = requests.post(GOOGLE_OAUTH_TOKEN, data=payload, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            raise GoogleOAuthError(f"Token exchange failed: {e}") from e
        if resp.status_code >= 400:
            raise GoogleOAuthError("Google rejected the authorization code", status_code=resp.status_code)
        return resp.json()

    def fetch_profile(self, access_token: str) -> GoogleProfile:
        """Read the signed-in user's id, email, name and picture."""
        headers = {'Authorization': f'Bearer {access_token}'}
        try:
            resp = requests.get(GOOGLE_USERINFO, headers=headers, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            raise GoogleOAuthError(f"Profile request failed: {e}") from e
        if resp.status_code >= 400:
            raise GoogleOAuthError("Google profile request failed", status_code=resp.status_code)

        data = resp.json()
        if not data.get('email') or not data.get('id'):
            raise GoogleOAuthError("Google profile has no email")
        email = data['email'].strip().lower()
        return GoogleProfile(
            id=str(data['id']),
            email=email,
            name=data.get('name') or email.split('@')[0],
            picture=data.get('picture'),
        )

    def login_redirect(self, token: Optional[str] = None, error: Optional[str] = None) -> str:
        """
        Frontend login URL to finish the flow on.

        A token goes in both the query string and the fragment so the SPA
        and the extension's token capture can each read it.
        """
        base = f"{self.frontend_url}/login"
        if token:
            query = urlencode({'token': token})
            return f"{base}?{query}#{query}"
        return f"{base}?{urlencode({'error': error or 'auth_failed'})}"
