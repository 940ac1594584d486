"""Persistence repositories for database operations."""

from credvault.infrastructure.persistence.repositories.role_repository import RoleRepository
from credvault.infrastructure.persistence.repositories.user_repository import UserRepository

__all__ = ["RoleRepository", "UserRepository"]
