"""
Field-level decoding rules shared by every entity.

The platform is loose about types: ids arrive as strings or integers,
status fields fall back to ``-1``, optional objects are sent as ``""``
or left out. ``Fields`` wraps one JSON object and lets an entity say,
per key, how strict it wants to be. Required keys raise ``DecodeError``;
everything else resolves to ``None`` or a default and never aborts the
parent.
"""

from __future__ import annotations

import json
from typing import Callable, Optional, TypeVar

from .errors import DecodeError

T = TypeVar("T")

_KIND_NAMES = {
    bool: "boolean",
    int: "integer",
    float: "number",
    str: "string",
    dict: "object",
    list: "array",
}


def _matches(value: object, kind: type) -> bool:
    # JSON booleans load as Python bools, which are ints.
    if kind is int:
        return isinstance(value, int) and not isinstance(value, bool)
    if kind is float:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    return isinstance(value, kind)


class Fields:
    """Typed access to the keys of one JSON object."""

    def __init__(self, entity: str, data: object):
        if not isinstance(data, dict):
            raise DecodeError(entity, "<root>", "expected an object")
        self.entity = entity
        self.data = data

    def __contains__(self, key: str) -> bool:
        return key in self.data

    def required(self, key: str, kind: type):
        if key not in self.data:
            raise DecodeError(self.entity, key, "missing")
        value = self.data[key]
        if not _matches(value, kind):
            raise DecodeError(
                self.entity, key, f"expected {_KIND_NAMES.get(kind, kind.__name__)}"
            )
        if kind is float:
            return float(value)
        return value

    def optional(self, key: str, kind: type):
        value = self.data.get(key)
        if value is None or not _matches(value, kind):
            return None
        if kind is float:
            return float(value)
        return value

    def default(self, key: str, kind: type, fallback):
        value = self.optional(key, kind)
        return fallback if value is None else value

    def string_or_int(self, key: str) -> str:
        """A field sent either as a string or an integer, normalized to str."""
        value = self.optional(key, str)
        if value is not None:
            return value
        return str(self.required(key, int))

    def optional_string_or_int(self, key: str) -> Optional[str]:
        try:
            return self.string_or_int(key)
        except DecodeError:
            return None

    def nested(self, key: str, decoder: Callable[[object], T]) -> T:
        if key not in self.data:
            raise DecodeError(self.entity, key, "missing")
        return decoder(self.data[key])

    def optional_nested(self, key: str, decoder: Callable[[object], T]) -> Optional[T]:
        value = self.data.get(key)
        if value is None:
            return None
        try:
            return decoder(value)
        except DecodeError:
            return None

    def list_of(self, key: str, decoder: Callable[[object], T]) -> list[T]:
        return [decoder(item) for item in self.required(key, list)]

    def optional_list_of(
        self, key: str, decoder: Callable[[object], T]
    ) -> Optional[list[T]]:
        items = self.optional(key, list)
        if items is None:
            return None
        try:
            return [decoder(item) for item in items]
        except DecodeError:
            return None

    def string_list(self, key: str) -> list[str]:
        items = self.required(key, list)
        if not all(isinstance(item, str) for item in items):
            raise DecodeError(self.entity, key, "expected an array of strings")
        return list(items)


def parse_json(raw: bytes) -> object:
    """Parse a response body, raising DecodeError on malformed JSON."""
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise DecodeError("Response", "<body>", f"not valid JSON: {exc}") from exc
    except RecursionError:
        raise DecodeError("Response", "<body>", "nested too deeply") from None


def error_message(raw: bytes) -> Optional[str]:
    """Extract the message from a ``{"error": "..."}`` envelope, if any."""
    try:
        body = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError, RecursionError):
        return None
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return None
