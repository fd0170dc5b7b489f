"""
Translate the platform's UTF-8 byte offsets into code-point ranges.

Link spans in rants and comments are reported as byte offsets into the
UTF-8 encoding of the text. Python strings index by code point, so every
span is converted before it reaches a caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TextRange:
    location: int
    length: int

    @property
    def end(self) -> int:
        return self.location + self.length

    def slice(self, text: str) -> str:
        return text[self.location : self.end]


def find_range(text: str, needle: str) -> Optional[TextRange]:
    """Range of the first occurrence of ``needle`` in ``text``."""
    if not needle:
        return None
    index = text.find(needle)
    if index < 0:
        return None
    return TextRange(index, len(needle))


def resolve_link_range(
    text: str, title: str, start: Optional[int] = None, end: Optional[int] = None
) -> Optional[TextRange]:
    """Locate a link inside the text that owns it.

    With both byte offsets, the bytes between them are decoded and their
    first occurrence in ``text`` is returned. Otherwise the link's display
    title is searched for. The match is not checked against the offsets,
    so a repeated fragment resolves to its first occurrence.
    """
    if start is None or end is None:
        return find_range(text, title)

    encoded = text.encode("utf-8")
    if start < 0 or end < start or end > len(encoded):
        logger.debug(
            "link offsets %d..%d outside %d-byte text", start, end, len(encoded)
        )
        return None

    try:
        fragment = encoded[start:end].decode("utf-8")
    except UnicodeDecodeError:
        logger.debug("link offsets %d..%d split a UTF-8 sequence", start, end)
        return None

    return find_range(text, fragment)


def _count_code_points(data: bytes) -> int:
    # Continuation bytes look like 0b10xxxxxx.
    return sum(1 for byte in data if (byte & 0xC0) != 0x80)


def char_range_for_byte_range(text: str, location: int, length: int) -> TextRange:
    """Convert a UTF-8 byte range of ``text`` into a code-point range."""
    data = text.encode("utf-8")
    if location < 0 or length < 0 or location + length > len(data):
        raise ValueError(
            f"byte range {location}+{length} outside {len(data)}-byte text"
        )

    char_location = _count_code_points(data[:location])
    char_length = _count_code_points(data[location : location + length])
    return TextRange(char_location, char_length)
