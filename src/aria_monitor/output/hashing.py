"""Content identity for JSON event records.

Events are identified by a digest of their canonical form: the JSON value
re-emitted compactly with object keys kept in their original order.  Two
texts that differ only in whitespace therefore share an identity while a
reordering of keys does not.
"""

from __future__ import annotations

import hashlib
import json
import math
import re
from collections.abc import Iterable
from typing import Any, Optional

from aria_monitor.errors import ParseError, StructuralError

__all__ = [
    "UNIQUE_ID_FIELD",
    "add_unique_id",
    "canonicalize",
    "hash_json",
    "hash_of",
    "load_json",
    "remove_array_whitespace",
    "with_injected_field",
]

UNIQUE_ID_FIELD = "uniqueId"

_VERTICAL_ARRAY = re.compile(r": \[\n[^\]]*")
_WHITESPACE = re.compile(r"\s+")


def _reject_constant(token: str) -> Any:
    raise ParseError(f"Non-standard JSON constant {token!r}")


def _parse_finite_float(token: str) -> float:
    value = float(token)
    if not math.isfinite(value):
        raise ParseError(f"Number literal {token!r} overflows a double")
    return value


def load_json(json_text: str) -> Any:
    """Parse ``json_text`` keeping object keys in document order.

    Number literals too large for a double are rejected with :class:`ParseError`
    so every parsed value can be written back out as strict JSON.
    """

    if not isinstance(json_text, str):
        raise TypeError("json_text must be a string")
    try:
        return json.loads(
            json_text,
            parse_constant=_reject_constant,
            parse_float=_parse_finite_float,
        )
    except json.JSONDecodeError as exc:
        raise ParseError(f"Malformed JSON: {exc.msg} at position {exc.pos}") from exc


def canonicalize(json_text: str) -> str:
    """Return the compact single-line form of ``json_text``."""

    return json.dumps(
        load_json(json_text),
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def _digest(payload: bytes) -> str:
    return hashlib.md5(payload).hexdigest()


def hash_json(json_text: str) -> str:
    """Return the hex digest of the canonical form of ``json_text``."""

    return _digest(canonicalize(json_text).encode("utf-8"))


def hash_of(values: Iterable[Optional[str]]) -> str:
    """Hash an ordered sequence of optional strings.

    Every entry is framed with a marker byte and, for strings, its encoded
    length so that ``None`` never collides with any string and moving a
    ``None`` to another position changes the digest.
    """

    hasher = hashlib.md5()
    for value in values:
        if value is None:
            hasher.update(b"\x01")
            continue
        encoded = value.encode("utf-8")
        hasher.update(b"\x00")
        hasher.update(len(encoded).to_bytes(8, "big"))
        hasher.update(encoded)
    return hasher.hexdigest()


def with_injected_field(json_text: str, field_name: str, value: Any) -> str:
    """Insert ``field_name`` as the first member of a top-level JSON object.

    Single-line objects stay on one line.  Multi-line objects receive a new
    line that reuses the indentation of the first existing member.
    """

    payload = load_json(json_text)
    if not isinstance(payload, dict):
        raise StructuralError(
            f"Can only inject fields into a JSON object, got {type(payload).__name__}"
        )
    if field_name in payload:
        raise StructuralError(f"Field {field_name!r} is already present")

    entry = f"{json.dumps(field_name, ensure_ascii=False)}: {json.dumps(value, ensure_ascii=False)}"

    brace = json_text.index("{")
    head, rest = json_text[: brace + 1], json_text[brace + 1 :]
    stripped = rest.lstrip()
    leading = rest[: len(rest) - len(stripped)]

    if stripped.startswith("}"):
        if "\n" in leading:
            return f"{head}\n  {entry}{rest}"
        return f"{head}{entry}{rest}"
    if "\n" in leading:
        return f"{head}{leading}{entry},{rest}"
    return f"{head}{entry},{rest}"


def add_unique_id(json_text: str) -> str:
    """Return ``json_text`` with its content hash injected as ``uniqueId``."""

    return with_injected_field(json_text, UNIQUE_ID_FIELD, hash_json(json_text))


def remove_array_whitespace(json_text: str) -> str:
    """Collapse arrays printed one entry per line onto a single line."""

    return _VERTICAL_ARRAY.sub(lambda match: _WHITESPACE.sub("", match.group(0)), json_text)
