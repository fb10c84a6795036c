"""Admin password check using bcrypt.

There is one shared administrator password; only its bcrypt hash is stored
(settings.ADMIN_PASSWORD_HASH). Generate one with:

    python -c "from src.px_gateway.auth.password import hash_password; print(hash_password('...'))"
"""

import bcrypt


def hash_password(plain: str) -> str:
    hashed_bytes: bytes = bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt())
    return hashed_bytes.decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """False on mismatch or on a malformed hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False
