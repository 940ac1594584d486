"""Email address and phone number validation."""

import re

from email_validator import EmailNotValidError, validate_email as _check_email

from credvault.domain.entities import LOCAL_PROVIDER

PHONE_PATTERN = re.compile(r"^\+[1-9][0-9]{3,14}$")


def validate_email(email: str) -> bool:
    """Check that an email address is well formed (no DNS lookups)."""
    if not email:
        return False
    try:
        _check_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def validate_phone(phone: str | None, provider: str, is_update: bool) -> bool:
    """Check a phone number.

    A missing phone number is valid. Numbers that come from a federated
    provider at account creation are accepted as given; anything entered
    for a local account, or changed later, must be in international
    format: '+' followed by 4 to 15 digits, not starting with 0.

    Args:
        phone: The phone number, or None.
        provider: Identity provider of the record.
        is_update: Whether the number is being changed on an existing record.

    Returns:
        True if the number is acceptable.
    """
    if not phone:
        return True
    if provider != LOCAL_PROVIDER and not is_update:
        return True
    return PHONE_PATTERN.match(phone) is not None
