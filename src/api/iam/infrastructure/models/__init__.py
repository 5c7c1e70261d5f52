"""SQLAlchemy ORM models for IAM bounded context.

These models map to database tables and are used by repository implementations.
"""

from iam.infrastructure.models.user_account import UserAccountModel

__all__ = [
    "UserAccountModel",
]
