#Field-level sanitizers shared by the request schemas
import re
from typing import Optional

NAME_PATTERN = re.compile(r"^[^\W\d_](?:[^\W\d_]|[ '\-.])*$")
PHONE_PATTERN = re.compile(r"^\+?[0-9 ()\-]{7,20}$")
CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")

MAX_NAME_LENGTH = 100
MAX_NOTES_LENGTH = 5000


class SecureTextValidator:
    """Static helpers raising ValueError, for use inside pydantic validators."""

    @staticmethod
    def sanitize_name(value: str) -> str:
        value = " ".join(value.split())
        if not value:
            raise ValueError("Name cannot be empty")
        if len(value) > MAX_NAME_LENGTH:
            raise ValueError(f"Name must be at most {MAX_NAME_LENGTH} characters")
        if not NAME_PATTERN.match(value):
            raise ValueError("Name contains invalid characters")
        return value

    @staticmethod
    def sanitize_notes(value: str) -> str:
        value = CONTROL_CHARS.sub("", value).strip()
        if len(value) > MAX_NOTES_LENGTH:
            raise ValueError(f"Text must be at most {MAX_NOTES_LENGTH} characters")
        return value

    @staticmethod
    def validate_phone_field(value: str) -> str:
        value = value.strip()
        if not PHONE_PATTERN.match(value):
            raise ValueError("Invalid phone number")
        return value

    @staticmethod
    def validate_password_strength(value: str) -> str:
        if len(value) < 8:
            raise ValueError('Password must be at least 8 characters')
        #bcrypt only looks at the first 72 bytes
        if len(value.encode("utf-8")) > 72:
            raise ValueError('Password must be at most 72 bytes')
        if not any(c.isupper() for c in value):
            raise ValueError('Password must contain at least one uppercase letter')
        if not any(c.islower() for c in value):
            raise ValueError('Password must contain at least one lowercase letter')
        if not any(c.isdigit() for c in value):
            raise ValueError('Password must contain at least one digit')
        return value


def optional(func, value: Optional[str]) -> Optional[str]:
    """Apply a sanitizer only when a non-empty value is given."""
    return func(value) if value else None
