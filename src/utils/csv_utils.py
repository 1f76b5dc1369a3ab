"""
CSV helpers for the data reformatter.

These are deliberately simple: fields are split on bare commas, so a comma
inside a value shifts the columns. No quoting or column-count checks.
"""
import json
from dataclasses import dataclass, field
from typing import Any


@dataclass
class ReformatTemplate:
    """Ordered CSV headers plus one example row."""
    headers: list[str] = field(default_factory=list)
    sample_row: str = ""

    @property
    def header_line(self) -> str:
        return ",".join(self.headers)

    @property
    def is_loaded(self) -> bool:
        return bool(self.headers)


def parse_template_text(text: str) -> ReformatTemplate:
    """
    Parse a header line and sample row out of newline-delimited text.

    The first non-blank line is the comma-joined header; the second
    non-blank line (if any) is the sample row.
    """
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    if not lines:
        return ReformatTemplate()

    headers = [h.strip() for h in lines[0].split(",")]
    sample_row = lines[1] if len(lines) > 1 else ""
    return ReformatTemplate(headers=headers, sample_row=sample_row)


def parse_template_payload(payload: Any) -> ReformatTemplate:
    """
    Build a template from a decoded JSON body.

    Accepts an object mapping header -> example value (key order is kept),
    or a string in the header/sample text layout.
    """
    if isinstance(payload, dict):
        headers = [str(k).strip() for k in payload.keys()]
        sample_row = ",".join(str(v).strip() for v in payload.values())
        return ReformatTemplate(headers=headers, sample_row=sample_row)
    if isinstance(payload, str):
        return parse_template_text(payload)
    raise ValueError(f"Unsupported template payload type: {type(payload).__name__}")


def parse_template_body(body: str) -> ReformatTemplate:
    """Parse a raw response body that may be JSON or plain text."""
    try:
        payload = json.loads(body)
    except json.JSONDecodeError:
        return parse_template_text(body)
    return parse_template_payload(payload)


def normalize_csv(header_line: str, text: str) -> str:
    """
    Tidy model output into CSV rows under the given header.

    Each non-blank line is split on commas, fields are trimmed and rejoined.

    Example:
        >>> normalize_csv("Name,Age", "Bob , 35\\n\\n")
        'Name,Age\\nBob,35'
    """
    rows = [header_line]
    for line in text.splitlines():
        if not line.strip():
            continue
        rows.append(",".join(part.strip() for part in line.split(",")))
    return "\n".join(rows)
