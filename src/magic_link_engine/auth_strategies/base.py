# auth_strategies/base.py

from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any


class BaseAuthStrategy(ABC):
    """
    Base class for all authentication strategies
    All strategies must implement this interface
    """

    def __init__(self, name: str):
        self.name = name
        self.created_at = datetime.now(UTC)

    @abstractmethod
    async def authenticate(self, credentials: dict[str, Any]) -> dict[str, Any]:
        """
        Authenticate with the provided credentials

        Args:
            credentials: Dictionary containing authentication credentials

        Returns:
            Dictionary describing the authenticated subject

        Raises:
            MagicLinkError: If authentication fails
        """
        pass

    @abstractmethod
    async def validate(self, token: str) -> Any:
        """
        Validate a token without side effects

        Raises:
            MagicLinkError: If the token is invalid
        """
        pass

    async def post_authenticate(self, auth_data: dict[str, Any]) -> dict[str, Any]:
        """
        Hook called after successful authentication
        Can be used for logging, analytics, etc.
        """
        return auth_data

    def get_strategy_metadata(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "created_at": self.created_at.isoformat(),
            "requires_password": self.requires_password(),
        }

    def requires_password(self) -> bool:
        """Whether this strategy requires a password"""
        return False


class TokenBasedStrategy(BaseAuthStrategy):
    """Base class for token-based authentication strategies"""

    def requires_password(self) -> bool:
        return False
