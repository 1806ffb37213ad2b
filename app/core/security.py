"""Password hashing and credential validation helpers."""

import hmac

import bcrypt

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

# Min/max lengths for identifier and password validation.
IDENTIFIER_MIN_LEN = 1
IDENTIFIER_MAX_LEN = 255
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str | None) -> bool:
    """Verify a plain password against a stored hash. Accounts without a hash never match."""
    if not hashed:
        return False
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


# Checked against when the identifier is unknown so login timing does not leak existence.
DUMMY_PASSWORD_HASH = hash_password("dummy-password-never-matches", rounds=BCRYPT_ROUNDS)


def normalize_identifier(identifier: str) -> str:
    return (identifier or "").strip()


def is_valid_identifier(identifier: str) -> bool:
    return IDENTIFIER_MIN_LEN <= len(normalize_identifier(identifier)) <= IDENTIFIER_MAX_LEN


def is_valid_password(password: str) -> bool:
    return PASSWORD_MIN_LEN <= len(password or "") <= PASSWORD_MAX_LEN


def constant_time_equals(a: str, b: str) -> bool:
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))
