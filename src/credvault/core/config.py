"""Configuration management for credvault.

This module uses Pydantic Settings to load and validate configuration from
environment variables and .env files. Configuration is loaded once at process
start and the resulting ``Settings`` instance is handed to the services that
need it.

Nested groups can be overridden with a double underscore, e.g.
``CREDVAULT_PASSWORD__MIN_LENGTH=12`` or
``CREDVAULT_VALIDATIONS__EMAIL__TTL=2592000``.
"""

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Values shipped in sample env files; treated as "not configured".
TWILIO_PLACEHOLDERS = frozenset({"TWILIO_FROM", "TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN"})
RESEND_PLACEHOLDER = "RESEND_API_KEY"

DEFAULT_BLOCKLIST = [
    "password",
    "password1",
    "password123",
    "123456",
    "12345678",
    "123456789",
    "1234567890",
    "qwerty",
    "qwerty123",
    "abc123",
    "letmein",
    "welcome",
    "welcome1",
    "admin",
    "administrator",
    "iloveyou",
    "monkey",
    "dragon",
    "football",
    "baseball",
    "sunshine",
    "princess",
    "trustno1",
    "passw0rd",
    "p@ssw0rd",
    "p@ssword1",
]


class PasswordSettings(BaseModel):
    """Password hashing and strength policy options."""

    default_algorithm: Literal["crypto", "bcrypt", "argon2id"] = "bcrypt"
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)
    pbkdf2_iterations: int = Field(default=10000, ge=10000)

    # Mandatory rules
    min_length: int = Field(default=10, ge=1)
    max_length: int = Field(default=128, ge=1)
    max_repeating: int = Field(
        default=2,
        ge=1,
        description="Longest allowed run of one repeated character",
    )
    blocklist: list[str] = Field(default_factory=lambda: list(DEFAULT_BLOCKLIST))

    # Character-class rule
    min_character_classes: int = Field(default=4, ge=0, le=4)
    allow_passphrases: bool = True
    min_passphrase_length: int = 20

    # Passphrase generation
    passphrase_min_length: int = 20
    passphrase_max_length: int = 40
    passphrase_max_attempts: int = Field(default=100, ge=1)

    @model_validator(mode="after")
    def validate_lengths(self) -> "PasswordSettings":
        """Validate that the length bounds are consistent."""
        if self.min_length > self.max_length:
            raise ValueError("password.min_length must not exceed password.max_length")
        if self.passphrase_min_length >= self.passphrase_max_length:
            raise ValueError(
                "password.passphrase_min_length must be lower than password.passphrase_max_length"
            )
        return self


class ChannelValidationSettings(BaseModel):
    """Validation options for one contact channel (email or phone)."""

    model_config = ConfigDict(populate_by_name=True)

    validate_contact: bool = Field(default=False, alias="validate")
    ttl: int = Field(
        default=0,
        ge=0,
        description="Seconds after creation before an unvalidated record expires (0 = never)",
    )


class ValidationSettings(BaseModel):
    """Contact validation options."""

    mandatory: list[Literal["email", "phone"]] = Field(
        default_factory=lambda: ["email"],
        description="Contact fields every account must provide",
    )
    email: ChannelValidationSettings = Field(default_factory=ChannelValidationSettings)
    phone: ChannelValidationSettings = Field(default_factory=ChannelValidationSettings)
    code_length: int = Field(default=6, ge=4, le=12)
    max_tries: int = Field(default=3, ge=1)
    max_resends: int = Field(default=3, ge=0)


class RoleSettings(BaseModel):
    """Role assignment options."""

    default: list[str] = Field(default_factory=lambda: ["user"])


class ProfileSettings(BaseModel):
    """Options for the external projection of a credential record."""

    private_attrs: list[str] = Field(default_factory=lambda: ["provider_data"])
    protected_attrs: list[str] = Field(
        default_factory=lambda: [
            "id",
            "password_hash",
            "salt",
            "algorithm",
            "provider",
            "roles",
            "validations",
            "created_at",
            "updated_at",
        ]
    )


class MailerSettings(BaseModel):
    """Outbound email options. Resend is preferred when a key is configured."""

    from_email: str = "noreply@localhost"
    from_name: str = "credvault"
    reply_to: str | None = None
    resend_api_key: str | None = None
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = True
    smtp_use_ssl: bool = False
    smtp_timeout: int = 10

    @property
    def resend_configured(self) -> bool:
        """Check if a usable Resend API key is configured."""
        return bool(self.resend_api_key) and self.resend_api_key != RESEND_PLACEHOLDER

    @property
    def smtp_configured(self) -> bool:
        """Check if SMTP credentials are configured."""
        return bool(self.smtp_host and self.smtp_username and self.smtp_password)


class TwilioSettings(BaseModel):
    """Outbound SMS options."""

    account_sid: str = "TWILIO_ACCOUNT_SID"
    auth_token: str = "TWILIO_AUTH_TOKEN"
    from_number: str = "TWILIO_FROM"
    timeout: float = 10.0

    @property
    def is_configured(self) -> bool:
        """Check that no credential is empty or left at its placeholder."""
        values = (self.account_sid, self.auth_token, self.from_number)
        return all(v and v not in TWILIO_PLACEHOLDERS for v in values)


class Settings(BaseSettings):
    """Application configuration settings.

    Settings are loaded from environment variables and .env files.
    All configuration values are validated at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CREDVAULT_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    app_name: str = "credvault"
    app_version: str = "0.1.0"
    environment: Literal["development", "production", "testing"] = "development"
    debug: bool = False

    # Database Settings
    database_url: str = "sqlite+aiosqlite:///./cv_data/credvault.db"
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 3600
    db_echo: bool = False

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    # Credential Settings
    password: PasswordSettings = Field(default_factory=PasswordSettings)
    validations: ValidationSettings = Field(default_factory=ValidationSettings)
    roles: RoleSettings = Field(default_factory=RoleSettings)
    profile: ProfileSettings = Field(default_factory=ProfileSettings)

    # Notification Settings
    mailer: MailerSettings = Field(default_factory=MailerSettings)
    twilio: TwilioSettings = Field(default_factory=TwilioSettings)

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept log levels in any case."""
        if isinstance(v, str):
            return v.upper()
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == "testing"

    @property
    def phone_validation_required(self) -> bool:
        """Check if any configured validation depends on SMS delivery."""
        return "phone" in self.validations.mandatory or self.validations.phone.validate_contact


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Only entry points (the CLI, migrations) should call this; services
    receive the instance explicitly.

    Returns:
        Settings: Cached application settings instance.
    """
    return Settings()
