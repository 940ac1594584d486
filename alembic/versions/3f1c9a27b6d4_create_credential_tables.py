"""create credential tables

Revision ID: 3f1c9a27b6d4
Revises:
Create Date: 2026-10-16 09:12:44.381205

"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3f1c9a27b6d4"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "roles",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "name",
            sa.String(length=50),
            nullable=False,
            comment="Role name (e.g., 'admin', 'user')",
        ),
        sa.Column(
            "description",
            sa.String(length=255),
            nullable=True,
            comment="Description of the role's purpose",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_roles_name"), "roles", ["name"], unique=True)

    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), nullable=False, comment="User ID (UUID)"),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("username", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("provider", sa.String(length=50), nullable=False, comment="Identity provider"),
        sa.Column(
            "password_hash",
            sa.String(length=255),
            nullable=False,
            comment="Hashed password (crypto/bcrypt/argon2id)",
        ),
        sa.Column("salt", sa.String(length=255), nullable=True),
        sa.Column(
            "algorithm",
            sa.String(length=16),
            nullable=False,
            server_default="crypto",
            comment="Password hash algorithm tag",
        ),
        sa.Column("roles", sa.JSON(), nullable=False),
        sa.Column("validations", sa.JSON(), nullable=False),
        sa.Column("provider_data", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    for column in ("email", "username"):
        op.create_index(
            op.f(f"ix_users_{column}"),
            "users",
            [column],
            unique=True,
            sqlite_where=sa.text(f"{column} != ''"),
            postgresql_where=sa.text(f"{column} != ''"),
        )
    op.create_index(op.f("ix_users_created_at"), "users", ["created_at"], unique=False)

    op.create_table(
        "ttl_indexes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("collection", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("key", sa.String(length=64), nullable=False),
        sa.Column("expire_after_seconds", sa.Integer(), nullable=False),
        sa.Column("partial_filter", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("collection", "name", name="uq_ttl_indexes_collection_name"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("ttl_indexes")
    op.drop_index(op.f("ix_users_created_at"), table_name="users")
    op.drop_index(op.f("ix_users_username"), table_name="users")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
    op.drop_index(op.f("ix_roles_name"), table_name="roles")
    op.drop_table("roles")
