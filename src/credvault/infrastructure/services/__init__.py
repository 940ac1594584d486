"""Notification delivery services."""

from credvault.infrastructure.services.notification_service import NotificationService

__all__ = ["NotificationService"]
