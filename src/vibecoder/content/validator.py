"""Content sanitization and validation.

Pure functions. A False result is a signal for the caller to raise; the
validator itself never raises.
"""

from __future__ import annotations

import json
import re
from typing import Any

MAX_CONTENT_LENGTH = 10_000
MAX_ID_LENGTH = 100

_DANGEROUS_PATTERN = re.compile(r"<script|javascript:|data:|vbscript:", re.IGNORECASE)
# ASCII control characters except tab (\x09), newline (\x0A) and carriage return (\x0D)
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_UUID_PATTERN = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)


class ContentValidator:
    """Validation and sanitization rules for free-text content."""

    max_content_length = MAX_CONTENT_LENGTH
    max_id_length = MAX_ID_LENGTH

    @staticmethod
    def validate_content(text: str) -> bool:
        """Reject empty, oversized, or script-like content."""
        if not text:
            return False
        if len(text) > MAX_CONTENT_LENGTH:
            return False
        if _DANGEROUS_PATTERN.search(text):
            return False
        return True

    @staticmethod
    def sanitize_content(text: str) -> str:
        """Trim, strip control characters, and cap the length."""
        sanitized = text.strip()
        sanitized = _CONTROL_CHARS.sub("", sanitized)
        if len(sanitized) > MAX_CONTENT_LENGTH:
            sanitized = sanitized[:MAX_CONTENT_LENGTH]
        return sanitized

    @staticmethod
    def validate_id(item_id: str) -> bool:
        if not item_id or len(item_id) > MAX_ID_LENGTH:
            return False
        return _UUID_PATTERN.match(item_id) is not None

    @staticmethod
    def validate_metadata(metadata: dict[str, Any]) -> bool:
        """Check that metadata is JSON-serializable."""
        try:
            json.dumps(metadata)
        except (TypeError, ValueError):
            return False
        return True
