"""
Current-User Resolution

Every write is stamped with the signed-in user's id. The calendar does
not manage sessions itself; it asks an AuthProvider each time and treats
a missing user as a terminal error for the attempted operation.
"""

from abc import ABC, abstractmethod
from typing import Optional

from custody_calendar.config import get_settings


class AuthError(Exception):
    """No current user could be resolved."""
    pass


class AuthProviderInterface(ABC):
    """Supplies the opaque id of the current user."""

    @abstractmethod
    async def get_current_user_id(self) -> str:
        """
        Resolve the current user.

        Raises:
            AuthError: If nobody is signed in
        """
        pass


class StaticAuthProvider(AuthProviderInterface):
    """A fixed user id, e.g. one handed over by the host app after sign-in."""

    def __init__(self, user_id: Optional[str]):
        self._user_id = user_id

    async def get_current_user_id(self) -> str:
        if not self._user_id or not self._user_id.strip():
            raise AuthError("No signed-in user")
        return self._user_id


class SettingsAuthProvider(AuthProviderInterface):
    """Reads the user id from CALENDAR_AUTH_USER_ID on every call."""

    async def get_current_user_id(self) -> str:
        user_id = get_settings().auth.user_id
        if not user_id or not user_id.strip():
            raise AuthError("CALENDAR_AUTH_USER_ID is not set")
        return user_id.strip()
