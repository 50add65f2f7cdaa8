"""Redaction - Replaces sensitive metadata values with a sentinel."""

from typing import Any, Dict, Iterable, Mapping

FILTERED = "[FILTERED]"


def should_filter(key: Any, filters: Iterable[str]) -> bool:
    """Case-sensitive check: the key equals a filter token or contains one."""
    if not isinstance(key, str):
        return False
    return any(token and token in key for token in filters)


def _redact_values(values: Mapping[str, Any], filters: Iterable[str]) -> Dict[str, Any]:
    redacted = {}
    for key, value in values.items():
        if should_filter(key, filters):
            redacted[key] = FILTERED
        elif isinstance(value, Mapping):
            redacted[key] = _redact_values(value, filters)
        else:
            redacted[key] = value
    return redacted


def redact(
    metadata: Mapping[str, Mapping[str, Any]],
    filters: Iterable[str],
) -> Dict[str, Dict[str, Any]]:
    """
    Redact every tab of a metadata bag.

    Keys are kept so the structure is preserved; nested mappings are redacted
    recursively. The input is not modified.

    Args:
        metadata: Tab -> key -> value mapping
        filters: Filter tokens

    Returns:
        A new, redacted mapping
    """
    filters = tuple(filters)
    return {
        tab: _redact_values(values, filters) if isinstance(values, Mapping) else values
        for tab, values in metadata.items()
    }
