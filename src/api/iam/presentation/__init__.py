"""IAM presentation layer."""

from iam.presentation.routes import router

__all__ = ["router"]
