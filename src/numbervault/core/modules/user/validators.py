from numbervault.errors import ValidationError

# bcrypt only hashes the first 72 bytes and rejects anything longer
MAX_PASSWORD_BYTES = 72


def normalize_email(email: str) -> str:
    """Trim and lower-case an email address.

    Raises:
        ValidationError: If the address is empty or has no '@'
    """
    normalized = email.strip().lower()
    if not normalized:
        raise ValidationError("Email is required")

    local, _, domain = normalized.partition("@")
    if not local or not domain or any(char.isspace() for char in normalized):
        raise ValidationError(f"Invalid email address '{email}'")
    return normalized


def validate_password(password: str) -> None:
    """Validate password meets requirements.

    Requirements:
    - No whitespace characters
    - Minimum length of 8 characters
    - At most 72 bytes once UTF-8 encoded

    Raises:
        ValidationError: If password doesn't meet requirements
    """
    if len(password) < 8:
        raise ValidationError("Password must be at least 8 characters long")

    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")

    if any(char.isspace() for char in password):
        raise ValidationError("Password cannot contain whitespace characters")
