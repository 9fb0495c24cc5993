"""
Security utility functions for password hashing and JWT token management.
"""
import hmac
import secrets
import string
import uuid
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from passlib.hash import pbkdf2_sha512

from gallery_api.config import get_settings
from gallery_api.schemas.user import TokenPayload

# Modular-crypt hashes are verified through the context; new hashes use hash_password
pwd_context = CryptContext(schemes=["pbkdf2_sha512"], deprecated="auto")

_BASE36 = string.digits + string.ascii_lowercase


def generate_salt() -> str:
    """Random 16-byte salt, hex encoded."""
    return secrets.token_hex(16)


def hash_password(password: str, salt: str) -> str:
    """
    Hash a password with PBKDF2-SHA512 (64 byte key).

    The salt string itself is the PBKDF2 salt and the digest is stored as
    hex next to it, the layout users.json and private_passwords.json use.

    Args:
        password: Plain text password
        salt: Salt string (see generate_salt)

    Returns:
        Hex encoded derived key
    """
    rounds = get_settings().password_hash_rounds
    handler = pbkdf2_sha512.using(salt=salt.encode("utf-8"), rounds=rounds)
    return pbkdf2_sha512.from_string(handler.hash(password)).checksum.hex()


def verify_password(
    plain_password: str,
    hashed_password: Optional[str],
    salt: Optional[str] = None,
) -> bool:
    """
    Verify a password against a stored hash.

    Hex digests need their salt; modular-crypt hashes carry their own.
    Unknown or malformed hashes never verify.
    """
    if not hashed_password:
        return False
    if hashed_password.startswith("$"):
        try:
            return pwd_context.verify(plain_password, hashed_password)
        except (ValueError, TypeError):
            return False
    if not salt:
        return False
    return hmac.compare_digest(hash_password(plain_password, salt), hashed_password.lower())


def create_access_token(
    user_id: str,
    session_id: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token bound to an active session.

    Args:
        user_id: User ID to encode in the token
        session_id: ActiveSession ID; the token dies with the session
        expires_delta: Optional expiration time delta

    Returns:
        Encoded JWT token string
    """
    settings = get_settings()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)

    to_encode = {
        "sub": user_id,
        "sid": session_id,
        "exp": datetime.utcnow() + expires_delta,
    }
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[TokenPayload]:
    """
    Decode and validate a JWT access token.

    Returns:
        TokenPayload if valid, None if invalid
    """
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None

    user_id = payload.get("sub")
    session_id = payload.get("sid")
    exp = payload.get("exp")
    if user_id is None or session_id is None or payload.get("scope"):
        return None

    return TokenPayload(
        sub=str(user_id),
        sid=str(session_id),
        exp=datetime.fromtimestamp(exp),
    )


def create_private_access_token(user_id: str) -> str:
    """
    Create a short-lived JWT that unlocks the private folder.
    Only issued after the private folder password was verified.
    """
    settings = get_settings()
    to_encode = {
        "sub": user_id,
        "exp": datetime.utcnow() + timedelta(seconds=settings.private_token_expire_seconds),
        "scope": "private",
    }
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def verify_private_access_token(token: str, user_id: str) -> bool:
    """Check that the private folder token is valid and belongs to user_id."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return False
    return payload.get("scope") == "private" and payload.get("sub") == user_id


def generate_share_id() -> str:
    """Public share link id: uuid4 plus an 8 character base-36 suffix."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(8))
    return f"{uuid.uuid4()}-{suffix}"


def generate_unique_filename(original_filename: str) -> str:
    """
    Generate a unique filename for uploaded files.

    Args:
        original_filename: Original filename from upload

    Returns:
        Unique filename with original extension
    """
    ext = Path(original_filename).suffix
    return f"{uuid.uuid4()}{ext}"
