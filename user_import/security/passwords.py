"""Password hashing (bcrypt with SHA-256 pre-hash).

Default password hashing capability for provisioned accounts. Bcrypt truncates
inputs at 72 bytes; pre-hashing with SHA-256 yields a fixed-length input so
long passwords are not silently truncated.
"""

import base64
import hashlib

import bcrypt


def _prehash(password: str) -> bytes:
    return base64.b64encode(hashlib.sha256(password.encode("utf-8")).digest())


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bool(bcrypt.checkpw(_prehash(plain_password), hashed_password.encode("utf-8")))
    except (ValueError, TypeError):
        return False


def get_password_hash(password: str, rounds: int = 12) -> str:
    """Return bcrypt hash of password (SHA-256 pre-hashed before bcrypt)."""
    hashed = bcrypt.hashpw(_prehash(password), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")
