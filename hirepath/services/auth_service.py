"""
Auth Service - registration, password login and Google sign-in.

Every successful path ends the same way: a 7-day JWT plus the public user
projection.
"""

import logging

from hirepath.core.auth import create_access_token, hash_password, verify_password
from hirepath.core.errors import AccountConflict, Conflict, InvalidCredentials
from hirepath.core.logger import mask_email
from hirepath.services.google_oauth import GoogleProfile
from hirepath.services.user_service import UserService, public_user

logger = logging.getLogger(__name__)


def session_payload(user: dict) -> dict:
    """{token, user} response body for a signed-in user."""
    return {
        "token": create_access_token(str(user["_id"])),
        "user": public_user(user),
    }


class AuthService:
    """
    Credential checks on top of UserService.
    """

    def __init__(self, user_service: UserService = None):
        self.user_service = user_service or UserService()

    def register(self, email: str, password: str, name: str) -> dict:
        """
        Create an email/password account.

        Args:
            email: normalized email (validated by RegisterRequest)
            password: plain password, at least 6 characters
            name: display name

        Raises:
            Conflict: email already registered
        """
        if self.user_service.get_by_email(email):
            logger.info("Registration rejected, %s already exists", mask_email(email))
            raise Conflict("User already exists")

        user = self.user_service.create_password_user(email, hash_password(password), name)
        logger.info("User created: %s", user["_id"])
        return session_payload(user)

    def login(self, email: str, password: str) -> dict:
        """
        Check an email/password pair.

        Raises:
            InvalidCredentials: unknown email or wrong password
            AccountConflict: the account signs in with Google
        """
        user = self.user_service.get_by_email(email)
        if user is None:
            raise InvalidCredentials("Invalid credentials")

        if user.get("isGoogleUser"):
            raise AccountConflict("This account uses Google Sign-In. Please sign in with Google.")

        if not verify_password(password, user.get("password")):
            raise InvalidCredentials("Invalid credentials")

        return session_payload(user)

    def google_sign_in(self, profile: GoogleProfile) -> dict:
        """
        Find or create the account for a Google profile.

        Raises:
            AccountConflict: the email belongs to a password account
        """
        user = self.user_service.get_by_email(profile.email)

        if user is None:
            user = self.user_service.create_google_user(
                email=profile.email,
                name=profile.name,
                google_id=profile.id,
                picture=profile.picture,
            )
            logger.info("Google user created: %s", user["_id"])
        elif not user.get("isGoogleUser") and not user.get("googleId"):
            logger.info("Password account %s attempted Google sign-in", user["_id"])
            raise AccountConflict("This email is already registered. Please sign in with your password.")
        else:
            user = self.user_service.update_google_profile(
                user["_id"], name=profile.name, google_id=profile.id, picture=profile.picture
            )

        return session_payload(user)


def get_auth_service() -> AuthService:
    """Get auth service instance."""
    return AuthService()
