"""SQLAlchemy model for the users table.

Each row is a credential record. Contact validations, roles and provider
data are stored as JSON documents.
"""

from datetime import datetime

from sqlalchemy import JSON, DateTime, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from credvault.infrastructure.persistence.database import Base


class UserModel(Base):
    """SQLAlchemy model for the users table.

    Times are stored as naive UTC.

    Attributes:
        id: Primary key (UUID string).
        email: Email address (lower-cased, may be empty for federated accounts).
        username: Login name (lower-cased, may be empty).
        phone: Phone number in international format.
        first_name: First name(s).
        last_name: Last name.
        provider: Identity provider ('local' for password accounts).
        password_hash: Encoded password hash, empty when no password is set.
        salt: Separately stored salt (legacy KDF only).
        algorithm: Tag of the algorithm that produced the hash.
        roles: JSON list of role names.
        validations: JSON list of contact validation attempts.
        provider_data: JSON data from a federated provider.
        created_at: Timestamp when the record was created.
        updated_at: Timestamp when the record was last updated.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, comment="User ID (UUID)")
    email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    username: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    provider: Mapped[str] = mapped_column(String(50), nullable=False, comment="Identity provider")
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="",
        comment="Hashed password (crypto/bcrypt/argon2id)",
    )
    salt: Mapped[str | None] = mapped_column(String(255), nullable=True)
    algorithm: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default="crypto",
        comment="Password hash algorithm tag",
    )
    roles: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    validations: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    provider_data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        # Email and username are unique once set; many records may leave them empty
        Index(
            "ix_users_email",
            "email",
            unique=True,
            sqlite_where=text("email != ''"),
            postgresql_where=text("email != ''"),
        ),
        Index(
            "ix_users_username",
            "username",
            unique=True,
            sqlite_where=text("username != ''"),
            postgresql_where=text("username != ''"),
        ),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, provider={self.provider})>"
