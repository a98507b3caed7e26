"""
Stateless access/refresh token issuing and verification.

Access and refresh tokens are signed with different secrets and carry a
``type`` claim, so one kind can never be accepted in place of the other.
Verification fails closed: any problem with a token yields ``None``.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from jwt import ExpiredSignatureError, InvalidTokenError
from loguru import logger

from digital_library.config import (ACCESS_TOKEN_EXPIRE_MINUTES,
                                    ACCESS_TOKEN_SECRET, ALGORITHM,
                                    REFRESH_TOKEN_EXPIRE_DAYS,
                                    REFRESH_TOKEN_SECRET)
from digital_library.schemas.users import UserRole

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


@dataclass(frozen=True)
class AccessClaims:
    user_id: int
    role: UserRole


@dataclass(frozen=True)
class RefreshClaims:
    user_id: int


class TokenService:
    def __init__(
        self,
        access_secret: str = ACCESS_TOKEN_SECRET,
        refresh_secret: str = REFRESH_TOKEN_SECRET,
        algorithm: str = ALGORITHM,
        access_ttl: timedelta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
        refresh_ttl: timedelta = timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS),
    ):
        if access_secret == refresh_secret:
            raise ValueError("Access and refresh tokens need distinct signing secrets")
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self.algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    def _encode(self, claims: Dict[str, Any], secret: str, ttl: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = dict(claims, iat=now, exp=now + ttl)
        return jwt.encode(payload, secret, algorithm=self.algorithm)

    def _decode(self, token: Optional[str], secret: str, token_type: str) -> Optional[Dict[str, Any]]:
        if not token or not isinstance(token, str):
            return None
        # Check token structure (should have 3 parts)
        if len(token.split(".")) != 3:
            return None
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub", "type"]},
            )
        except ExpiredSignatureError:
            logger.debug("{} token has expired", token_type)
            return None
        except InvalidTokenError as e:
            logger.debug("Invalid {} token: {}", token_type, e)
            return None
        except jwt.PyJWTError as e:
            logger.warning("{} token decoding error: {}", token_type, e)
            return None
        if payload.get("type") != token_type:
            return None
        return payload

    @staticmethod
    def _user_id(payload: Dict[str, Any]) -> Optional[int]:
        try:
            return int(payload["sub"])
        except (KeyError, TypeError, ValueError):
            return None

    def issue_access_token(self, user_id: int, role: UserRole) -> str:
        return self._encode(
            {"sub": str(user_id), "role": UserRole(role).value, "type": ACCESS_TOKEN_TYPE},
            self._access_secret,
            self.access_ttl,
        )

    def issue_refresh_token(self, user_id: int) -> str:
        return self._encode(
            {"sub": str(user_id), "type": REFRESH_TOKEN_TYPE},
            self._refresh_secret,
            self.refresh_ttl,
        )

    def verify_access_token(self, token: Optional[str]) -> Optional[AccessClaims]:
        payload = self._decode(token, self._access_secret, ACCESS_TOKEN_TYPE)
        if payload is None:
            return None
        user_id = self._user_id(payload)
        try:
            role = UserRole(payload.get("role"))
        except ValueError:
            return None
        if user_id is None:
            return None
        return AccessClaims(user_id=user_id, role=role)

    def verify_refresh_token(self, token: Optional[str]) -> Optional[RefreshClaims]:
        payload = self._decode(token, self._refresh_secret, REFRESH_TOKEN_TYPE)
        if payload is None:
            return None
        user_id = self._user_id(payload)
        if user_id is None:
            return None
        return RefreshClaims(user_id=user_id)


# --- Create global instance ---
token_service = TokenService()
