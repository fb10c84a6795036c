"""Human-shareable order references: PIX-XXXXXXXX (base36, upper case)."""

import secrets
import string

_ALPHABET = string.digits + string.ascii_uppercase
REFERENCE_PREFIX = "PIX-"
REFERENCE_LENGTH = 8


def generate_reference() -> str:
    body = "".join(secrets.choice(_ALPHABET) for _ in range(REFERENCE_LENGTH))
    return f"{REFERENCE_PREFIX}{body}"
