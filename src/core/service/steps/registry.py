"""
User registry gating access to the step ledger
"""

from datetime import datetime, timezone
from typing import Optional, Union

from src.core.exceptions.base import InvalidInputError, UnknownUserError
from src.infra.repository.base import StepStore
from src.core.logger.logger import get_logger

logger = get_logger(__name__)

UserId = Union[str, int]


def normalize_user_id(user_id: UserId) -> str:
    """Chat ids may arrive as integers; the engine keys everything by string."""
    if isinstance(user_id, bool) or not isinstance(user_id, (str, int)):
        raise InvalidInputError("User id must be a string or an integer", details={"user_id": repr(user_id)})
    normalized = str(user_id).strip()
    if not normalized:
        raise InvalidInputError("User id cannot be empty")
    return normalized


class UserRegistry:
    """Tracks which users are known to the system."""

    def __init__(self, store: StepStore):
        self.store = store

    async def register(self, user_id: UserId, registered_at: Optional[datetime] = None) -> bool:
        """
        Register a user. Registering a known user is a no-op.

        Returns:
            True if the user was newly created
        """
        user_id = normalize_user_id(user_id)
        created = await self.store.add_user(user_id, registered_at or datetime.now(timezone.utc))
        logger.info(
            "User registered" if created else "User already registered",
            extra={"user_id": user_id}
        )
        return created

    async def is_registered(self, user_id: UserId) -> bool:
        return await self.store.has_user(normalize_user_id(user_id))

    async def require(self, user_id: UserId) -> str:
        """
        Raises:
            UnknownUserError: If the user is not registered
        """
        user_id = normalize_user_id(user_id)
        if not await self.store.has_user(user_id):
            raise UnknownUserError(user_id)
        return user_id

    async def delete_user(self, user_id: UserId) -> None:
        """Remove the user and every one of its daily entries."""
        user_id = normalize_user_id(user_id)
        if not await self.store.remove_user(user_id):
            raise UnknownUserError(user_id)
        logger.info("User deleted with all entries", extra={"user_id": user_id})
