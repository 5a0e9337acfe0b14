"""
Field-level validators shared by the catalog input schemas.
"""


def require_non_blank(value: str | None, field_name: str) -> str:
    """Strip surrounding whitespace; reject None, empty and whitespace-only values."""
    if value is None:
        raise ValueError(f"{field_name} is required")
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be text")
    stripped = value.strip()
    if not stripped:
        raise ValueError(f"{field_name} must not be blank")
    return stripped
