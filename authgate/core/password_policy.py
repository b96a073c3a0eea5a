# authgate/core/password_policy.py
import re

MIN_LENGTH = 8
MAX_LENGTH = 64  # characters; hashing is bcrypt_sha256, so no byte cut-off

# At least one digit and one character outside [A-Za-z0-9]
_STRENGTH_RE = re.compile(r"^(?=.*\d)(?=.*[^A-Za-z0-9]).+$")


class PasswordPolicyError(ValueError):
    pass


def validate_password(password: str) -> str:
    """Return the password unchanged or raise PasswordPolicyError."""
    password = password or ""
    if not MIN_LENGTH <= len(password) <= MAX_LENGTH:
        raise PasswordPolicyError(f"password must be {MIN_LENGTH}-{MAX_LENGTH} characters")
    if not _STRENGTH_RE.match(password):
        raise PasswordPolicyError("password needs at least one digit and one special character")
    return password
