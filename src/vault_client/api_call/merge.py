"""
Deep merge of paginated JSON responses.

List endpoints return a partial array per page, while singleton fields are
repeated on every page. Pages are folded into one value with these rules,
applied to keys present on both sides:

- equal scalars: kept as is
- two lists: concatenated
- two strings: joined with ", "
- two objects: merged recursively
- anything else: the incoming value, unless it is None

Keys present on a single side are copied over.
"""

from typing import Any

STRING_SEPARATOR = ", "


def merge_values(current: Any, incoming: Any) -> Any:
    """Merge two JSON values. Neither argument is mutated."""
    if not isinstance(current, (list, dict)) and current == incoming:
        return current
    if isinstance(current, list) and isinstance(incoming, list):
        return current + incoming
    if isinstance(current, str) and isinstance(incoming, str):
        return STRING_SEPARATOR.join([current, incoming])
    if isinstance(current, dict) and isinstance(incoming, dict):
        return deep_merge(current, incoming)
    return incoming if incoming is not None else current


def deep_merge(current: dict[str, Any], incoming: dict[str, Any]) -> dict[str, Any]:
    """Merge two JSON objects key by key."""
    merged = dict(current)
    for key, value in incoming.items():
        if key in merged:
            merged[key] = merge_values(merged[key], value)
        else:
            merged[key] = value
    return merged
