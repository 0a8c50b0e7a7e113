"""Encoding and decoding utilities for field elements."""

from typing import Union

from zkcred.utils.hash import is_field_element


def parse_field_element(data: Union[int, str]) -> int:
    """
    Parse a field element from an int, a decimal string or a 0x hex string.

    Raises:
        ValueError: If the value is malformed or outside the field
    """
    if isinstance(data, bool):
        raise TypeError("Expected int or str, got bool")
    if isinstance(data, int):
        value = data
    elif isinstance(data, str):
        text = data.strip()
        if text.startswith(("0x", "0X")):
            value = int(text[2:], 16)
        else:
            value = int(text, 10)
    else:
        raise TypeError(f"Expected int or str, got {type(data)}")

    if not is_field_element(value):
        raise ValueError(f"Value is not a field element: {data!r}")
    return value


def field_to_str(value: int) -> str:
    """Decimal string form used for storage and JSON payloads."""
    return str(value)
