"""Update-payload sanitizing and literal query binding.

Client JSON is untrusted: a key like ``$where`` or a value like ``{"$ne": null}``
would be interpreted by MongoDB as an operator if it reached a query or update
document. Everything written by an update endpoint and every filter built from a
query string goes through these helpers first.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional

log = logging.getLogger("portfolio.sanitize")

OPERATOR_PREFIX = "$"


def contains_operator(value: Any) -> bool:
    """True if `value` holds a `$`-prefixed key anywhere (dicts and lists, any depth)."""
    if isinstance(value, Mapping):
        for k, v in value.items():
            if str(k).startswith(OPERATOR_PREFIX):
                return True
            if contains_operator(v):
                return True
        return False
    if isinstance(value, (list, tuple)):
        return any(contains_operator(v) for v in value)
    return False


def is_safe_scalar(value: Any) -> bool:
    return value is None or isinstance(value, (str, int, float, bool, datetime))


def is_string_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


def sanitize_update(
    payload: Any,
    *,
    allowed: Iterable[str],
    string_lists: Iterable[str] = (),
) -> Dict[str, Any]:
    """Reduce an untrusted update payload to plain allow-listed field values.

    - keys outside `allowed` are dropped
    - `$`-prefixed keys are dropped (top level), and any value containing one is dropped
    - values must be a scalar (str/number/bool/None/datetime) or, for a field named in
      `string_lists`, a list of strings; every other shape is dropped

    Never raises: the result is always a flat dict safe to put under `$set`.
    """

    if not isinstance(payload, Mapping):
        return {}

    allowed_keys: FrozenSet[str] = frozenset(allowed)
    list_keys: FrozenSet[str] = frozenset(string_lists)
    out: Dict[str, Any] = {}

    for key, value in payload.items():
        if not isinstance(key, str):
            continue
        if key.startswith(OPERATOR_PREFIX) or contains_operator(value):
            log.warning("Dropped operator in update payload (field=%s)", key)
            continue
        if key not in allowed_keys:
            continue

        if is_safe_scalar(value):
            out[key] = value
        elif key in list_keys and is_string_list(value):
            out[key] = list(value)
        # anything else (objects, mixed lists) is dropped

    return out


def literal_eq(value: Any) -> Optional[Dict[str, Any]]:
    """Bind a filter value as a literal equality match.

    Returns `{"$eq": value}` for plain strings and None for anything else, so a
    structured value like `{"$ne": "x"}` is ignored instead of forwarded.
    """
    if isinstance(value, str):
        return {"$eq": value}
    return None
