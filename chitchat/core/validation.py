"""Input rules shared by the server and the client.

Nothing here touches settings or the database, so the client can check
input before making any request.
"""

import re
import secrets

DEFAULT_HANDLE_PREFIX = "73"
HANDLE_LENGTH = 9
DEFAULT_ALLOWED_EMAIL_DOMAINS = ("gmail.com",)
DEFAULT_PASSWORD_MIN_LENGTH = 8


def is_valid_handle(candidate: str, prefix: str = DEFAULT_HANDLE_PREFIX) -> bool:
    """True when candidate is exactly nine digits starting with the reserved prefix."""
    if not isinstance(candidate, str):
        return False
    pattern = rf"{re.escape(prefix)}[0-9]{{{HANDLE_LENGTH - len(prefix)}}}"
    return re.fullmatch(pattern, candidate) is not None


def generate_handle(prefix: str = DEFAULT_HANDLE_PREFIX) -> str:
    digits = HANDLE_LENGTH - len(prefix)
    return f"{prefix}{secrets.randbelow(10**digits):0{digits}d}"


def email_domain_allowed(
    email: str, allowed_domains=DEFAULT_ALLOWED_EMAIL_DOMAINS
) -> bool:
    if not isinstance(email, str) or "@" not in email:
        return False
    domain = email.rsplit("@", 1)[1].lower()
    return domain in {d.lower() for d in allowed_domains}


def password_problem(
    password: str, min_length: int = DEFAULT_PASSWORD_MIN_LENGTH
) -> str | None:
    """Returns why a password is too weak, or None when it is acceptable."""
    if len(password) < min_length:
        return f"Password should be at least {min_length} characters."
    if not any(c.isupper() for c in password):
        return "Password should contain an upper-case letter."
    if not any(c.islower() for c in password):
        return "Password should contain a lower-case letter."
    if not any(c.isdigit() for c in password):
        return "Password should contain a digit."
    if not any(not c.isalnum() and not c.isspace() for c in password):
        return "Password should contain a symbol."
    return None
