import secrets
import string

# URL-safe alphabet, 64 symbols. Codes are case-sensitive.
ALPHABET = string.ascii_letters + string.digits + "_-"
SHORT_CODE_LENGTH = 6


def generate_short_code(length: int = SHORT_CODE_LENGTH) -> str:
    """Generate a cryptographically random short code."""
    return ''.join(secrets.choice(ALPHABET) for _ in range(length))
