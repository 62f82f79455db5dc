import re

PHONE_PATTERN = re.compile(r"^\+?[0-9][0-9\s\-().]{4,24}$")


def normalize_phone(value):
    """Phones are checked for shape, never sanitized."""
    if not isinstance(value, str):
        value = str(value)
    value = value.strip()
    if not PHONE_PATTERN.match(value):
        raise ValueError("Invalid phone number")
    return value
