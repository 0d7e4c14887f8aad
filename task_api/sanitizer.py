"""
Input sanitization for untrusted request payloads.

Strips markup, script blocks and store query-operator tokens from string
values, and drops object keys that look like query operators.  Applied at
the API boundary before any validation rule runs, so handlers and the
store only ever see sanitized data.
"""

from typing import Any
import re

SCRIPT_BLOCK_PATTERN = re.compile(
    r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>",
    re.IGNORECASE,
)
MARKUP_TAG_PATTERN = re.compile(r"<[^>]+>")
OPERATOR_TOKEN_PATTERN = re.compile(r"\$\w+", re.ASCII)

OPERATOR_KEY_PREFIX = "$"


def sanitize_string(value: Any) -> Any:
    """
    Remove script blocks, markup tags and ``$operator`` tokens from a string.

    Non-string values are returned unchanged.
    """
    if not isinstance(value, str):
        return value

    sanitized = SCRIPT_BLOCK_PATTERN.sub("", value)
    sanitized = MARKUP_TAG_PATTERN.sub("", sanitized)
    return OPERATOR_TOKEN_PATTERN.sub("", sanitized)


def sanitize_object(value: Any) -> Any:
    """
    Sanitize a payload at any nesting depth.

    Dicts are rebuilt without keys starting with ``$``; lists are rebuilt
    element by element; strings go through ``sanitize_string``.  Any other
    value passes through untouched.  The input is never mutated.

    Containers are walked with an explicit stack rather than recursion, so
    a deeply nested body cannot exhaust the interpreter's call stack.

    Args:
        value: Decoded JSON payload (or any part of one).

    Returns:
        A sanitized value of the same shape.
    """
    if not isinstance(value, (dict, list)):
        return sanitize_string(value)

    root = _empty_like(value)
    pending = [(value, root)]

    while pending:
        source, target = pending.pop()
        if isinstance(source, dict):
            entries = (
                (key, item)
                for key, item in source.items()
                if not _is_operator_key(key)
            )
        else:
            entries = enumerate(source)

        for key, item in entries:
            if isinstance(item, (dict, list)):
                sanitized = _empty_like(item)
                pending.append((item, sanitized))
            else:
                sanitized = sanitize_string(item)

            # Children are attached before they are filled so order is kept.
            if isinstance(target, dict):
                target[key] = sanitized
            else:
                target.append(sanitized)

    return root


def _empty_like(container):
    return {} if isinstance(container, dict) else []


def _is_operator_key(key) -> bool:
    return isinstance(key, str) and key.startswith(OPERATOR_KEY_PREFIX)
