from datetime import datetime, timezone
from typing import Any, Optional

# Epoch values above this are treated as milliseconds (JS Date.getTime()).
_MILLIS_THRESHOLD = 10 ** 11


def to_datetime(value: Any) -> Optional[datetime]:
    """
    Convert a provider-native timestamp into an aware UTC datetime.

    Accepts Firestore DatetimeWithNanoseconds / datetime, objects exposing
    `to_datetime()`, `{seconds, nanoseconds}` maps (also the `_seconds` form
    produced by JSON exports), epoch seconds or milliseconds and ISO strings.
    Raises ValueError for anything else.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if hasattr(value, "to_datetime"):
        return to_datetime(value.to_datetime())
    if isinstance(value, dict):
        seconds = value.get("seconds", value.get("_seconds"))
        nanos = value.get("nanoseconds", value.get("_nanoseconds", 0)) or 0
        if not isinstance(seconds, (int, float)) or isinstance(seconds, bool):
            raise ValueError(f"not a timestamp map: {value!r}")
        return datetime.fromtimestamp(seconds + nanos / 1e9, tz=timezone.utc)
    if isinstance(value, bool):
        raise ValueError("booleans are not timestamps")
    if isinstance(value, (int, float)):
        seconds = value / 1000 if abs(value) >= _MILLIS_THRESHOLD else value
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return to_datetime(datetime.fromisoformat(text))
    raise ValueError(f"unsupported timestamp value: {value!r}")
