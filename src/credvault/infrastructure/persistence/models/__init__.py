"""SQLAlchemy models."""

from credvault.infrastructure.persistence.models.role import RoleModel
from credvault.infrastructure.persistence.models.ttl_index import TTLIndexModel
from credvault.infrastructure.persistence.models.user import UserModel

__all__ = ["RoleModel", "TTLIndexModel", "UserModel"]
