"""
Identity checks over the host platform's identity lookup.

The host forwards the signed-in user with each request; this service only
asks "who is calling?" and never manages credentials itself.
"""

import logging
from typing import Awaitable, Callable, Optional

from room_design.core.exceptions import UnauthorizedError
from room_design.models.dtos import AuthenticatedUser

logger = logging.getLogger(__name__)

IdentityLookup = Callable[[], Awaitable[Optional[AuthenticatedUser]]]


async def _anonymous() -> Optional[AuthenticatedUser]:
    return None


class AuthService:
    """Resolves and checks the identity of the current caller."""

    def __init__(self, identity_lookup: IdentityLookup = _anonymous):
        self._identity_lookup = identity_lookup

    @classmethod
    def for_user(cls, user: Optional[AuthenticatedUser]) -> "AuthService":
        """Service whose caller is fixed to ``user`` (None: anonymous)."""
        async def lookup() -> Optional[AuthenticatedUser]:
            return user
        return cls(lookup)

    async def get_current_user(self) -> Optional[AuthenticatedUser]:
        try:
            user = await self._identity_lookup()
        except Exception as e:
            logger.error(f"Failed to get current user: {e}")
            return None
        if user is None or not user.username:
            return None
        return user

    async def is_authenticated(self) -> bool:
        return await self.get_current_user() is not None

    async def require_auth(self) -> AuthenticatedUser:
        """
        Returns the current user.

        Raises:
            UnauthorizedError: If nobody is signed in.
        """
        user = await self.get_current_user()
        if user is None:
            raise UnauthorizedError()
        return user

    async def is_owner(self, resource_user_id: str) -> bool:
        user = await self.get_current_user()
        return user is not None and user.id == resource_user_id
