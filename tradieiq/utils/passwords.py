"""Password hashing for the local auth backends (Argon2 via passlib)."""

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, stored: str) -> bool:
    """False for a wrong password or a stored value that is not a known hash."""
    try:
        return pwd_context.verify(password, stored)
    except ValueError:
        return False
