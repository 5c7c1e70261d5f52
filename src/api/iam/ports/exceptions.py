"""Domain exceptions for IAM bounded context.

These exceptions represent domain-level errors that can occur during
repository operations. They should be caught and handled by the
application layer.
"""


class DuplicateEmailError(Exception):
    """Raised when attempting to register an account with an email already in use.

    Emails are globally unique; an email identifies one login across all
    clinics.
    """

    pass


class UserAccountNotFoundError(Exception):
    """Raised when an account cannot be found."""

    pass
