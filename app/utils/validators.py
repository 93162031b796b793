import re
import string

# Define allowed special characters (excluding space)
SPECIAL_CHARS = string.punctuation.replace(' ', '')

MIN_PASSWORD_LENGTH = 8

# (pattern, message) pairs checked in order; every failing rule is reported
PASSWORD_RULES: list[tuple[str, str]] = [
    (r'[A-Z]', "Password must contain at least 1 uppercase letter"),
    (r'[a-z]', "Password must contain at least 1 lowercase letter"),
    (r'\d', "Password must contain at least 1 digit"),
    (rf'[{re.escape(SPECIAL_CHARS)}]', f"Password must contain at least 1 special character ({SPECIAL_CHARS})"),
]

# Folder and file display names end up in Content-Disposition headers and
# on other users' screens, so control characters and path separators are
# rejected up front.
_FORBIDDEN_NAME_CHARS = re.compile(r'[\x00-\x1f\x7f/\\]')
MAX_NAME_LENGTH = 255


class PasswordValidationError(Exception):
    """Password validation error exception"""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__('; '.join(errors))


def validate_password_complexity(password: str) -> None:
    """
    Validate password complexity requirements.

    Raises:
        PasswordValidationError: When password does not meet requirements
    """
    errors = []
    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    errors.extend(message for pattern, message in PASSWORD_RULES if not re.search(pattern, password))

    if errors:
        raise PasswordValidationError(errors)


def normalize_display_name(name: str) -> str:
    """
    Strip surrounding whitespace and validate a folder/file display name.

    Raises:
        ValueError: If the name is empty, too long or has forbidden characters
    """
    cleaned = name.strip()
    if not cleaned:
        raise ValueError("Name is required")
    if len(cleaned) > MAX_NAME_LENGTH:
        raise ValueError(f"Name must be at most {MAX_NAME_LENGTH} characters")
    if _FORBIDDEN_NAME_CHARS.search(cleaned):
        raise ValueError("Name contains forbidden characters")
    return cleaned
