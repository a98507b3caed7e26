"""
Request-level authentication dependencies.

``get_auth_context`` never fails: a missing or unusable bearer token simply
yields ``Anonymous``. ``require_user`` and ``require_admin`` turn that into
401/403 for endpoints that need an identity.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from digital_library.schemas.context import (ANONYMOUS, Authenticated,
                                             AuthContext, UserContext,
                                             user_of)
from digital_library.services.token_service import token_service
from digital_library.utils.exceptions import (ForbiddenError,
                                              UnauthenticatedError)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_auth_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthContext:
    if credentials is None:
        return ANONYMOUS
    claims = token_service.verify_access_token(credentials.credentials)
    if claims is None:
        return ANONYMOUS
    return Authenticated(UserContext(user_id=claims.user_id, role=claims.role))


async def require_user(context: AuthContext = Depends(get_auth_context)) -> UserContext:
    user = user_of(context)
    if user is None:
        raise UnauthenticatedError()
    return user


async def require_admin(user: UserContext = Depends(require_user)) -> UserContext:
    if not user.is_privileged:
        raise ForbiddenError()
    return user
