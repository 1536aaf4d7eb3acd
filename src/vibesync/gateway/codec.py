"""Firestore REST typed-value encoding.

Firestore's REST API wraps every field value in a single-key object naming its
type, e.g. ``{"stringValue": "todo"}`` or ``{"mapValue": {"fields": {...}}}``.
"""

from __future__ import annotations

from datetime import UTC, date, datetime
from enum import Enum
from typing import Any

from ..utils import date_to_datetime, from_iso


def encode_value(value: Any) -> dict[str, Any]:
    """Encode a Python value as a Firestore ``Value``."""
    if value is None:
        return {"nullValue": None}
    if isinstance(value, Enum):
        value = value.value
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        # int64 travels as a decimal string
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, datetime):
        return {"timestampValue": _format_timestamp(value)}
    if isinstance(value, date):
        return {"timestampValue": _format_timestamp(date_to_datetime(value))}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(v) for v in value]}}
    if isinstance(value, dict):
        return {"mapValue": {"fields": encode_fields(value)}}
    raise TypeError(f"Cannot encode {type(value).__name__} as a Firestore value")


def decode_value(value: dict[str, Any]) -> Any:
    """Decode a Firestore ``Value`` into a Python value."""
    if "nullValue" in value:
        return None
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "stringValue" in value:
        return value["stringValue"]
    if "timestampValue" in value:
        return from_iso(value["timestampValue"])
    if "arrayValue" in value:
        return [decode_value(v) for v in value["arrayValue"].get("values", [])]
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    if "referenceValue" in value:
        return value["referenceValue"]
    if "geoPointValue" in value:
        return dict(value["geoPointValue"])
    if "bytesValue" in value:
        return value["bytesValue"]
    raise ValueError(f"Unknown Firestore value type: {sorted(value)}")


def encode_fields(fields: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Encode a flat dict of fields."""
    return {key: encode_value(val) for key, val in fields.items()}


def decode_fields(fields: dict[str, dict[str, Any]]) -> dict[str, Any]:
    """Decode a Firestore ``fields`` map."""
    return {key: decode_value(val) for key, val in fields.items()}


def decode_document(document: dict[str, Any]) -> dict[str, Any]:
    """Flatten a Firestore ``Document`` into its fields plus ``id``.

    The identifier is the last segment of the resource name
    (``projects/p/databases/(default)/documents/tasks/<id>``).
    """
    data = decode_fields(document.get("fields", {}))
    data["id"] = document["name"].rsplit("/", 1)[-1]
    return data


def _format_timestamp(value: datetime) -> str:
    """RFC 3339 in UTC with a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")
