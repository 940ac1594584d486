"""Role repository for database operations."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from credvault.infrastructure.persistence.models import RoleModel


class RoleRepository:
    """Repository for role database operations.

    Also serves as the role validator of the credential service.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def create(self, name: str, description: str | None = None) -> RoleModel:
        """Create a new role.

        Args:
            name: Unique role name.
            description: Optional description.

        Returns:
            Created role model.
        """
        role = RoleModel(name=name, description=description)
        self.session.add(role)
        await self.session.flush()
        return role

    async def get_by_name(self, name: str) -> RoleModel | None:
        """Get a role by name.

        Args:
            name: Role name (e.g., 'admin', 'user').

        Returns:
            Role model if found, None otherwise.
        """
        result = await self.session.execute(select(RoleModel).where(RoleModel.name == name))
        return result.scalar_one_or_none()

    async def list_names(self) -> list[str]:
        """List all role names in alphabetical order."""
        result = await self.session.execute(select(RoleModel.name).order_by(RoleModel.name))
        return list(result.scalars().all())

    async def role_exists(self, name: str) -> bool:
        """Check if a role with the given name exists."""
        return await self.get_by_name(name) is not None
