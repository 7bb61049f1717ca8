"""
Credential hashing: salted PBKDF2-SHA256 digests of the form
`pbkdf2_sha256$<iterations>$<salt hex>$<hash hex>`.
"""
import hashlib
import hmac
import secrets

from recipeshare import config

ALGORITHM = "pbkdf2_sha256"


def hash_password(password: str, iterations: int = None) -> str:
    iterations = iterations or config.PASSWORD_HASH_ITERATIONS
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), iterations).hex()
    return f"{ALGORITHM}${iterations}${salt}${digest}"


def verify_password(password: str, password_hash: str) -> bool:
    """Check `password` against a stored digest; malformed digests never match."""
    if not password or not password_hash:
        return False
    try:
        algorithm, iterations, salt, expected = password_hash.split("$", 3)
        iterations = int(iterations)
    except ValueError:
        return False
    if algorithm != ALGORITHM:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), iterations).hex()
    return hmac.compare_digest(digest, expected)
