"""Password hashing and generation."""

import secrets

from passlib.context import CryptContext

from app.core.constants import BCRYPT_ROUNDS, GENERATED_PASSWORD_BYTES


pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=BCRYPT_ROUNDS,
)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        Bcrypt hash of the password
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def generate_password(nbytes: int = GENERATED_PASSWORD_BYTES) -> str:
    """Generate a random URL-safe initial password."""
    return secrets.token_urlsafe(nbytes)
