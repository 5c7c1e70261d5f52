"""Password hashing for user accounts.

Uses bcrypt with automatic salt generation.
"""

import bcrypt

# bcrypt only uses the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    The work factor is automatically determined by bcrypt's gensalt().

    Args:
        password: The plaintext password

    Returns:
        The bcrypt hash as a string

    Raises:
        ValueError: If the password is longer than bcrypt accepts
    """
    encoded = password.encode()
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(encoded, bcrypt.gensalt()).decode()


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash using constant-time comparison.

    Args:
        password: The plaintext password to verify
        password_hash: The bcrypt hash to verify against

    Returns:
        True if the password matches the hash, False otherwise (including
        for a hash that is not a valid bcrypt hash)
    """
    encoded = password.encode()
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, password_hash.encode())
    except ValueError:
        return False
