"""Database infrastructure - shared SQLAlchemy primitives."""

from infrastructure.database.models import Base, TenantScopedMixin, TimestampMixin

__all__ = [
    "Base",
    "TenantScopedMixin",
    "TimestampMixin",
]
