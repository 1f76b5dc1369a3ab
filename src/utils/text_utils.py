"""
Text utility functions for building model prompts.
"""
import json
from typing import Any


def render_payload(value: Any) -> str:
    """
    Render a request payload for embedding in a prompt.

    Strings are used as-is; any other JSON value is serialized.

    Example:
        >>> render_payload({"id": 7})
        '{"id": 7}'
    """
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)
