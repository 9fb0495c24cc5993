"""
Utility functions package.
"""
from gallery_api.utils.security import (
    hash_password,
    verify_password,
    generate_salt,
    create_access_token,
    decode_access_token,
    generate_share_id,
)

__all__ = [
    "hash_password",
    "verify_password",
    "generate_salt",
    "create_access_token",
    "decode_access_token",
    "generate_share_id",
]
