"""Identity and serialisation helpers for emitted events."""

from aria_monitor.output.hashing import (
    UNIQUE_ID_FIELD,
    add_unique_id,
    canonicalize,
    hash_json,
    hash_of,
    remove_array_whitespace,
    with_injected_field,
)

__all__ = [
    "UNIQUE_ID_FIELD",
    "add_unique_id",
    "canonicalize",
    "hash_json",
    "hash_of",
    "remove_array_whitespace",
    "with_injected_field",
]
