from pydantic import BaseModel
from pydantic.alias_generators import to_camel

#JSON on the wire is camelCase, Python attributes stay snake_case
class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


def upper_enum_value(v):
    """Let clients send enum values in any case ("high" -> "HIGH")."""
    return v.upper() if isinstance(v, str) else v
