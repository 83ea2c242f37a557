from .client import ClientORM
from .user import UserORM, UserStatus

__all__ = [
    "ClientORM",
    "UserORM",
    "UserStatus",
]
