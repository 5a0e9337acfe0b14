def normalize_case(value: str | None, *, upper: bool = True) -> str | None:
    """
    Upper- or lower-case a settings value, passing None through untouched.
    Surrounding whitespace is stripped so `LOG_LEVEL=" debug "` still validates.
    """
    if value is None:
        return None
    value = value.strip()
    return value.upper() if upper else value.lower()
