from typing import Tuple

import bcrypt
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from digital_library.config import BCRYPT_ROUNDS
from digital_library.models.user import User
from digital_library.schemas.users import UserStatus
from digital_library.services.token_service import TokenService, token_service
from digital_library.utils.exceptions import UnauthenticatedError

# bcrypt only looks at the first 72 bytes of a password
_BCRYPT_MAX_BYTES = 72


class AuthService:
    def __init__(self, tokens: TokenService = token_service):
        self.tokens = tokens

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Check a password against its bcrypt hash"""
        try:
            return bcrypt.checkpw(
                plain_password.encode("utf-8")[:_BCRYPT_MAX_BYTES],
                hashed_password.encode("utf-8"),
            )
        except ValueError as e:
            logger.error("Password verification failed: {}", e)
            return False

    @staticmethod
    def get_password_hash(password: str) -> str:
        salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
        return bcrypt.hashpw(password.encode("utf-8")[:_BCRYPT_MAX_BYTES], salt).decode("utf-8")

    def issue_tokens(self, user: User) -> Tuple[str, str]:
        """Return (access_token, refresh_token) for a user"""
        access_token = self.tokens.issue_access_token(user.id, user.role)
        refresh_token = self.tokens.issue_refresh_token(user.id)
        return access_token, refresh_token

    async def authenticate_user(self, email: str, password: str, db: AsyncSession) -> User:
        """Authenticate by email and password; only active accounts may log in"""
        result = await db.execute(select(User).where(User.email == email.lower()))
        user = result.scalar_one_or_none()

        if not user or not self.verify_password(password, user.password_hash):
            logger.warning("Failed login attempt for {}", email)
            raise UnauthenticatedError("Invalid credentials")

        if user.status != UserStatus.ACTIVE.value:
            logger.warning("Login attempt for {} account: {}", user.status, email)
            raise UnauthenticatedError("User account is not active")

        logger.info("User {} logged in", user.id)
        return user

    async def refresh_session(self, refresh_token: str, db: AsyncSession) -> Tuple[str, str]:
        """
        Exchange a refresh token for a new access token and a rotated refresh token.

        The account is re-read here because a refresh token can outlive the
        account's good standing; suspended or deleted users get nothing.
        """
        claims = self.tokens.verify_refresh_token(refresh_token)
        if claims is None:
            raise UnauthenticatedError("Invalid refresh token")

        user = await db.get(User, claims.user_id)
        if user is None or user.status != UserStatus.ACTIVE.value:
            logger.warning("Refresh rejected for user {}", claims.user_id)
            raise UnauthenticatedError("Invalid refresh token")

        return self.issue_tokens(user)


# --- Create global instance ---
auth_service = AuthService()
