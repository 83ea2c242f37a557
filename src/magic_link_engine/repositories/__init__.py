from .client_repo import ClientRepository
from .postgres_repo import PostgresRepository
from .user_repo import UserRepository

__all__ = ["ClientRepository", "PostgresRepository", "UserRepository"]
