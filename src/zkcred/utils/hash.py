"""Field-element hash utilities."""

import hashlib
from typing import Union

# BN254 scalar field order; every leaf, root and public input lives below it.
SNARK_SCALAR_FIELD = (
    21888242871839275222246405745257275088548364400416034343698204186575808495617
)

FIELD_ELEMENT_SIZE = 32


def sha256(data: Union[bytes, str]) -> bytes:
    """
    Compute SHA-256 hash of data.

    Args:
        data: Bytes or string to hash

    Returns:
        bytes: 32-byte SHA-256 hash
    """
    if isinstance(data, str):
        data = data.encode('utf-8')
    return hashlib.sha256(data).digest()


def is_field_element(value: int) -> bool:
    """Check that value is an int in [0, SNARK_SCALAR_FIELD)."""
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value < SNARK_SCALAR_FIELD


def field_to_bytes(value: int) -> bytes:
    """
    Encode a field element as 32 big-endian bytes.

    Raises:
        ValueError: If value is not a field element
    """
    if not is_field_element(value):
        raise ValueError(f"Value is not a field element: {value!r}")
    return value.to_bytes(FIELD_ELEMENT_SIZE, 'big')


def hash_pair(left: int, right: int) -> int:
    """
    Compute the 2-to-1 tree hash of two field elements.

    SHA-256(left || right) over 32-byte big-endian encodings, reduced
    modulo the scalar field.

    Args:
        left: Left child
        right: Right child

    Returns:
        int: Parent node
    """
    digest = sha256(field_to_bytes(left) + field_to_bytes(right))
    return int.from_bytes(digest, 'big') % SNARK_SCALAR_FIELD


def hash_to_field(data: Union[int, bytes, str]) -> int:
    """
    Map an arbitrary signal or external nullifier into the field.

    Integers are encoded as 32 big-endian bytes first. The digest is
    shifted right by 8 bits so the result always fits below the field.
    """
    if isinstance(data, int):
        if data < 0 or data >= 2**256:
            raise ValueError("Integer input must fit in 256 bits")
        data = data.to_bytes(FIELD_ELEMENT_SIZE, 'big')
    return int.from_bytes(sha256(data), 'big') >> 8
