#Query-string helpers shared by the routers
import enum
from typing import Optional, Type, TypeVar

from ..errors import ValidationError

E = TypeVar("E", bound=enum.Enum)


def parse_enum(enum_cls: Type[E], value: Optional[str], field: str) -> Optional[E]:
    """Case-insensitive lookup of an enum value; unknown values are a 400."""
    if not value:
        return None
    try:
        return enum_cls(value.upper())
    except ValueError:
        raise ValidationError(f"Invalid {field}: {value}")
