"""
A self-describing JSON value for payloads whose shape is not fixed.

The subscribed feed nests independently shaped documents inside one
envelope. Those documents are captured as ``JSONValue`` trees, then each
sub-tree is serialized back to bytes and handed to its own typed decoder.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Union

from .errors import DecodeError


class JSONKind(str, Enum):
    BOOL = "bool"
    STRING = "string"
    INT = "int"
    DOUBLE = "double"
    OBJECT = "object"
    ARRAY = "array"


@dataclass(frozen=True)
class JSONValue:
    kind: JSONKind
    value: Union[bool, str, int, float, dict, list]

    @classmethod
    def from_python(cls, obj: object, path: str = "<value>") -> "JSONValue":
        """Capture a parsed JSON value.

        Shapes are tried in a fixed order: bool, string, int, double,
        object, array. ``bool`` must come before ``int`` and ``int`` before
        ``float`` so that neither is captured by a wider shape. ``null``
        matches nothing, at the top level or nested, and fails the decode.
        """
        if isinstance(obj, bool):
            return cls(JSONKind.BOOL, obj)
        if isinstance(obj, str):
            return cls(JSONKind.STRING, obj)
        if isinstance(obj, int):
            return cls(JSONKind.INT, obj)
        if isinstance(obj, float):
            return cls(JSONKind.DOUBLE, obj)
        if isinstance(obj, dict):
            return cls(
                JSONKind.OBJECT,
                {
                    str(key): cls.from_python(item, f"{path}.{key}")
                    for key, item in obj.items()
                },
            )
        if isinstance(obj, list):
            return cls(
                JSONKind.ARRAY,
                [cls.from_python(item, f"{path}[{i}]") for i, item in enumerate(obj)],
            )
        if obj is None:
            raise DecodeError("JSONValue", path, "null matches no shape")
        raise DecodeError("JSONValue", path, f"unsupported value {obj!r}")

    @classmethod
    def loads(cls, raw: bytes) -> "JSONValue":
        try:
            return cls.from_python(json.loads(raw.decode("utf-8")))
        except (UnicodeDecodeError, ValueError) as exc:
            raise DecodeError("JSONValue", "<body>", f"not valid JSON: {exc}") from exc
        except RecursionError:
            raise DecodeError("JSONValue", "<body>", "nested too deeply") from None

    # ── Access ────────────────────────────────────────────

    def __getitem__(self, key: Union[str, int]) -> "JSONValue":
        if self.kind is JSONKind.OBJECT and isinstance(key, str):
            try:
                return self.value[key]
            except KeyError:
                raise DecodeError("JSONValue", key, "missing") from None
        if self.kind is JSONKind.ARRAY and isinstance(key, int):
            try:
                return self.value[key]
            except IndexError:
                raise DecodeError("JSONValue", str(key), "out of range") from None
        raise DecodeError("JSONValue", str(key), f"cannot index a {self.kind.value}")

    def items(self) -> Iterator["JSONValue"]:
        if self.kind is not JSONKind.ARRAY:
            raise DecodeError("JSONValue", "<items>", f"not an array: {self.kind.value}")
        return iter(self.value)

    # ── Re-serialization ──────────────────────────────────

    def to_python(self) -> object:
        if self.kind is JSONKind.OBJECT:
            return {key: item.to_python() for key, item in self.value.items()}
        if self.kind is JSONKind.ARRAY:
            return [item.to_python() for item in self.value]
        return self.value

    def dumps(self) -> bytes:
        return json.dumps(self.to_python(), ensure_ascii=False).encode("utf-8")
