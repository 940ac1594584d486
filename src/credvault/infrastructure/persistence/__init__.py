"""Persistence layer: SQLAlchemy models, repositories and the TTL index store."""
