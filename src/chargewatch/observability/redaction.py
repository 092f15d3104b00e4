"""Redaction and sanitizing helpers.

Log context goes through safe_log_context (customer emails never reach logs).
Raw request bodies go through sanitize_request_data before being written to
the error_records.request_data column.
"""

import json
import re
from typing import Any

_EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

# C0 and C1 control characters, DEL included
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f]")

_REDACTED = "[REDACTED]"


def redact_string(value: str) -> str:
    """Redact email addresses from a string."""
    return _EMAIL_PATTERN.sub(_REDACTED, value)


def redact_value(value: Any) -> str:
    """Redact any value for safe logging. Returns string representation."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return redact_string(value)
    if isinstance(value, dict):
        return f"dict(keys={list(value.keys())})"
    if isinstance(value, (list, tuple, set, frozenset)):
        return f"list(len={len(value)})"
    return f"<{type(value).__name__}>"


def safe_log_context(**kwargs: Any) -> dict[str, str]:
    """Build a context dict safe for logging. All values are redacted."""
    return {k: redact_value(v) for k, v in kwargs.items()}


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def loads_strict_json(data: str | bytes) -> Any:
    """json.loads that rejects NaN, Infinity and -Infinity."""
    return json.loads(data, parse_constant=_reject_constant)


def sanitize_request_data(data: str) -> str:
    """Make a raw request body safe to store in a JSON column.

    Valid JSON is returned untouched. Anything else has its control
    characters stripped and is wrapped as
    {"original_data": ..., "length": ..., "error": "Invalid JSON data"}.

    Args:
        data: Raw request body text.

    Returns:
        A string that is always valid JSON.
    """
    try:
        loads_strict_json(data)
        return data
    except ValueError:
        pass

    # Escape newlines/tabs first so they survive the control-character strip
    sanitized = data.replace("\n", "\\n").replace("\r", "\\r").replace("\t", "\\t")
    sanitized = _CONTROL_CHARS.sub("", sanitized)

    return json.dumps(
        {
            "original_data": sanitized,
            "length": len(data),
            "error": "Invalid JSON data",
        }
    )
