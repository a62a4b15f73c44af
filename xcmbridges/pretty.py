"""
Human-readable rendering of chain values for logs and snapshots.
"""

import dataclasses
import enum
import json
from decimal import Decimal
from typing import Any, Mapping

HASH_PLACEHOLDER = "(hash)"
_HASH_HEX_LENGTH = 2 + 64


def to_human(value: Any) -> Any:
    """
    Recursively convert a chain value into JSON-friendly data.

    Integers are kept as plain numbers. Anything exposing ``as_hex()`` is
    rendered through it instead of structurally, and raw bytes become 0x hex.
    SCALE objects render their decoded ``value``. Unrecognized values pass
    through unchanged and are stringified by ``pretty_string``.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    as_hex = getattr(value, "as_hex", None)
    if callable(as_hex):
        return as_hex()
    if isinstance(value, (bytes, bytearray, memoryview)):
        return "0x" + bytes(value).hex()
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, enum.Enum):
        return value.name
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_human(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        return {str(k): to_human(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_human(v) for v in value]
    # scalecodec.ScaleType and friends
    if hasattr(value, "value_serialized"):
        return to_human(value.value_serialized)
    if hasattr(value, "value") and hasattr(value, "decode"):
        return to_human(value.value)
    return value


def pretty_string(value: Any) -> str:
    """Indented JSON rendering of ``value``; never raises."""
    try:
        return json.dumps(to_human(value), indent=2, ensure_ascii=False, default=str)
    except (TypeError, ValueError, RecursionError):
        return repr(value)


def _round_significant(number: float, digits: int):
    if number == 0:
        return number
    rounded = float(f"{number:.{digits}g}")
    return int(rounded) if isinstance(number, int) else rounded


def redact(value: Any, number: int = 2, hash: bool = True) -> Any:
    """
    Make event data stable enough to compare against a stored snapshot.

    Numbers are rounded to ``number`` significant digits (pass 0 to leave them
    alone) and 32-byte hex hashes are replaced by ``"(hash)"``.
    """
    value = to_human(value)
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, (int, float)):
        return _round_significant(value, number) if number else value
    if isinstance(value, str):
        if hash and value.startswith("0x") and len(value) == _HASH_HEX_LENGTH:
            return HASH_PLACEHOLDER
        return value
    if isinstance(value, dict):
        return {k: redact(v, number, hash) for k, v in value.items()}
    if isinstance(value, list):
        return [redact(v, number, hash) for v in value]
    return value
