import hmac
import secrets


def generate_code(length: int) -> str:
    """Zero-padded numeric code, uniform over its range."""
    return f"{secrets.randbelow(10**length):0{length}d}"


def codes_match(expected: str, submitted: str) -> bool:
    """Constant-time comparison of a stored code and a submitted one."""
    return hmac.compare_digest(expected.encode("utf-8"), submitted.encode("utf-8"))
