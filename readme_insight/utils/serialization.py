"""Shared serialization utilities.

Provides centralized logic for converting the pipeline's frozen dataclasses,
enums and datetimes to JSON-serializable primitives. The result envelope is
consumed by non-Python layers, so dataclass field names can be emitted in
camelCase.
"""

import math
from dataclasses import fields, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any


def to_camel_case(name: str) -> str:
    """Convert a snake_case identifier to camelCase.

    >>> to_camel_case("version_constraint")
    'versionConstraint'
    """
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def dataclass_to_dict(data: Any, camel_case: bool = False) -> dict[str, Any]:
    """Serialize a dataclass instance field by field.

    Unlike serialize_to_primitives(), this ignores a to_dict() on the object
    itself, so dataclasses can implement to_dict() on top of it.
    """
    result = {}
    for f in fields(data):
        key = to_camel_case(f.name) if camel_case else f.name
        result[key] = serialize_to_primitives(getattr(data, f.name), camel_case)
    return result


def serialize_to_primitives(data: Any, camel_case: bool = False) -> Any:
    """Convert complex Python types to JSON-serializable primitives.

    Handles:
    - Primitives (str, int, float, bool, None): returned as-is
    - datetime: converted to ISO format string
    - Enum: converted to value
    - Objects with to_dict(): use that method
    - dataclass: converted field by field (nested to_dict() hooks honored)
    - dict: recursively serialize keys and values
    - list/tuple/frozenset: recursively serialize items
    - Special floats (inf, nan): converted to None

    Args:
        data: Any Python data structure.
        camel_case: Emit dataclass field names in camelCase.

    Returns:
        JSON-serializable data (primitives, dicts, lists only).
    """
    if data is None:
        return None

    if isinstance(data, Enum):
        return data.value

    if isinstance(data, (str, int, bool)):
        return data

    if isinstance(data, float):
        if math.isnan(data) or math.isinf(data):
            return None
        return data

    if isinstance(data, datetime):
        return data.isoformat()

    if hasattr(data, "to_dict") and not isinstance(data, type):
        return serialize_to_primitives(data.to_dict(), camel_case)

    if is_dataclass(data) and not isinstance(data, type):
        return dataclass_to_dict(data, camel_case)

    if isinstance(data, dict):
        return {
            str(serialize_to_primitives(k)): serialize_to_primitives(v, camel_case)
            for k, v in data.items()
        }

    if isinstance(data, (list, tuple)):
        return [serialize_to_primitives(item, camel_case) for item in data]

    if isinstance(data, (set, frozenset)):
        return sorted(serialize_to_primitives(item, camel_case) for item in data)

    return str(data)
