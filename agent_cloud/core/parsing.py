"""Extraction of structured JSON payloads from free-text agent responses."""

import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")

# First fenced block, with or without a ``json`` language tag
_FENCED_BLOCK = re.compile(r"```(?:json)?[ \t]*\n?(.*?)\n?```", re.DOTALL)


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """Either a parsed value or the reason parsing failed."""

    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap_or(self, default: T) -> T:
        """Return the parsed value, or ``default`` when parsing failed."""
        if self.error is None and self.value is not None:
            return self.value
        return default


def extract_json_text(text: str) -> str:
    """Return the body of the first fenced code block, or the whole text."""
    match = _FENCED_BLOCK.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def parse_structured_response(
    text: str,
    build: Callable[[dict[str, Any]], T],
) -> ParseResult[T]:
    """Parse an agent response into a typed value.

    Args:
        text: Concatenated response text, possibly wrapping the JSON in a
            fenced code block
        build: Converts the decoded JSON object into the target type; may
            raise ``ValueError``/``TypeError`` on schema mismatch

    Returns:
        A ``ParseResult`` carrying the value, or an error description. The
        caller decides which default to substitute.
    """
    if not text or not text.strip():
        return ParseResult(error="Empty response")

    try:
        data = json.loads(extract_json_text(text))
    except json.JSONDecodeError as e:
        return ParseResult(error=f"Invalid JSON: {e}")

    if not isinstance(data, dict):
        return ParseResult(error=f"Expected a JSON object, got {type(data).__name__}")

    try:
        return ParseResult(value=build(data))
    except (ValueError, TypeError) as e:
        return ParseResult(error=f"Schema mismatch: {e}")
