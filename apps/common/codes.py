import hashlib
import secrets

# Uppercase letters and digits without the look-alikes 0/O and 1/I.
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def random_code(length: int = 6, alphabet: str = CODE_ALPHABET) -> str:
    return "".join(secrets.choice(alphabet) for _ in range(length))


def random_token(nbytes: int = 32) -> str:
    """URL-safe token for links (~43 chars for 32 bytes)."""
    return secrets.token_urlsafe(nbytes)


def normalize_code(code: str) -> str:
    return "".join((code or "").split()).upper()


def hash_secret(value: str) -> str:
    return hashlib.sha256(value.encode()).hexdigest()
