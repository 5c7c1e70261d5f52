"""SQLAlchemy ORM model for the patients table."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.models import Base, TenantScopedMixin, TimestampMixin


class PatientModel(Base, TimestampMixin, TenantScopedMixin):
    """ORM model for patients table.

    Accessed only through ``TenantScopedRepository``; the tenant_id column
    comes from ``TenantScopedMixin``.
    """

    __tablename__ = "patients"

    id: Mapped[str] = mapped_column(String(26), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<PatientModel(id={self.id}, tenant_id={self.tenant_id})>"
