"""
Utility modules for shared functionality.
"""
from .csv_utils import (
    ReformatTemplate,
    parse_template_text,
    parse_template_payload,
    parse_template_body,
    normalize_csv,
)
from .text_utils import render_payload

__all__ = [
    "ReformatTemplate",
    "parse_template_text",
    "parse_template_payload",
    "parse_template_body",
    "normalize_csv",
    "render_payload",
]
