"""
Caller identity as seen by services.

Endpoints with optional authentication receive either ``Authenticated`` or
``Anonymous`` and pass it on explicitly instead of a nullable user field.
"""

from dataclasses import dataclass
from typing import Optional, Union

from .users import UserRole


@dataclass(frozen=True)
class UserContext:
    user_id: int
    role: UserRole

    @property
    def is_privileged(self) -> bool:
        return UserRole(self.role).is_privileged


@dataclass(frozen=True)
class Authenticated:
    user: UserContext


@dataclass(frozen=True)
class Anonymous:
    pass


AuthContext = Union[Authenticated, Anonymous]

ANONYMOUS = Anonymous()


def user_of(context: AuthContext) -> Optional[UserContext]:
    if isinstance(context, Authenticated):
        return context.user
    return None
