"""Portable, self-describing binary encoding of query result rows.

Layout (version 1)::

    b"CTR" | version:u8 | row_count:varint | row*

Every value is prefixed with a one byte tag:

    N null, T true, F false, I integer (zig-zag varint), D double (IEEE-754, big endian),
    S string (varint length + utf-8), L list (varint count + values),
    M map (varint count + (key string, value) pairs)

Rows are encoded as maps. Keys are written in sorted order so that equal rows
always produce equal bytes.
"""

from __future__ import annotations

import base64
import binascii
import math
import struct
from typing import Any, Iterable, Mapping, Sequence

from .models import Row

MAGIC = b"CTR"
VERSION = 1

_NULL = ord("N")
_TRUE = ord("T")
_FALSE = ord("F")
_INT = ord("I")
_FLOAT = ord("D")
_STRING = ord("S")
_LIST = ord("L")
_MAP = ord("M")

_DOUBLE = struct.Struct(">d")


class ResultCodecError(ValueError):
    pass


class CorruptPayload(ResultCodecError):
    pass


class UnsupportedType(ResultCodecError):
    def __init__(self, value: object, path: str) -> None:
        self.value = value
        self.path = path
        super().__init__(
            f"Unsupported value of type {type(value).__name__} at {path}"
        )


def encode(rows: Iterable[Mapping[str, Any]]) -> bytes:
    materialized = list(rows)
    out = bytearray(MAGIC)
    out.append(VERSION)
    _write_varint(out, len(materialized))
    for index, row in enumerate(materialized):
        if not isinstance(row, Mapping):
            raise UnsupportedType(row, f"row[{index}]")
        out.append(_MAP)
        _write_map(out, row, f"row[{index}]")
    return bytes(out)


def decode(payload: bytes) -> list[Row]:
    reader = _Reader(payload)
    if reader.take(len(MAGIC)) != MAGIC:
        raise CorruptPayload("payload does not start with the result magic")
    version = reader.byte()
    if version != VERSION:
        raise CorruptPayload(f"unsupported payload version {version}")
    count = reader.varint()
    rows: list[Row] = []
    for _ in range(count):
        if reader.byte() != _MAP:
            raise CorruptPayload(f"row at offset {reader.offset - 1} is not a map")
        rows.append(_read_map(reader, depth=1))
    if not reader.exhausted():
        raise CorruptPayload(
            f"{len(payload) - reader.offset} trailing byte(s) after last row"
        )
    return rows


def encode_text(rows: Iterable[Mapping[str, Any]]) -> str:
    return base64.b64encode(encode(rows)).decode("ascii")


def decode_text(text: str) -> list[Row]:
    return decode(payload_from_text(text))


def payload_from_text(text: str) -> bytes:
    try:
        return base64.b64decode(text.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise CorruptPayload(f"result is not valid base-64: {exc}") from exc


def ensure_supported(rows: Sequence[Mapping[str, Any]]) -> None:
    """Raise UnsupportedType if any value in ``rows`` cannot be encoded."""
    encode(rows)


def _write_varint(out: bytearray, value: int) -> None:
    while True:
        chunk = value & 0x7F
        value >>= 7
        if value:
            out.append(chunk | 0x80)
        else:
            out.append(chunk)
            return


def _write_value(out: bytearray, value: Any, path: str) -> None:
    # bool before int: bool is an int subclass
    if value is None:
        out.append(_NULL)
    elif value is True:
        out.append(_TRUE)
    elif value is False:
        out.append(_FALSE)
    elif isinstance(value, int):
        out.append(_INT)
        _write_varint(out, (value << 1) if value >= 0 else ((-value << 1) - 1))
    elif isinstance(value, float):
        out.append(_FLOAT)
        out += _DOUBLE.pack(value)
    elif isinstance(value, str):
        out.append(_STRING)
        _write_string(out, value)
    elif isinstance(value, Mapping):
        out.append(_MAP)
        _write_map(out, value, path)
    elif isinstance(value, list) or type(value) is tuple:
        # tuple subclasses such as spatial points are not plain lists
        out.append(_LIST)
        _write_varint(out, len(value))
        for index, item in enumerate(value):
            _write_value(out, item, f"{path}[{index}]")
    else:
        raise UnsupportedType(value, path)


def _write_string(out: bytearray, value: str) -> None:
    raw = value.encode("utf-8")
    _write_varint(out, len(raw))
    out += raw


def _write_map(out: bytearray, value: Mapping[Any, Any], path: str) -> None:
    for key in value:
        if not isinstance(key, str):
            raise UnsupportedType(key, f"{path} key")
    _write_varint(out, len(value))
    for key in sorted(value):
        _write_string(out, key)
        _write_value(out, value[key], f"{path}.{key}")


class _Reader:
    def __init__(self, payload: bytes) -> None:
        self._payload = payload
        self.offset = 0

    def exhausted(self) -> bool:
        return self.offset == len(self._payload)

    def take(self, size: int) -> bytes:
        end = self.offset + size
        if end > len(self._payload):
            raise CorruptPayload(
                f"truncated payload: needed {size} byte(s) at offset {self.offset}"
            )
        chunk = self._payload[self.offset : end]
        self.offset = end
        return bytes(chunk)

    def byte(self) -> int:
        return self.take(1)[0]

    def varint(self) -> int:
        result = 0
        shift = 0
        while True:
            current = self.byte()
            result |= (current & 0x7F) << shift
            if not current & 0x80:
                return result
            shift += 7

    def string(self) -> str:
        raw = self.take(self.varint())
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise CorruptPayload(f"invalid utf-8 string: {exc}") from exc


_MAX_DEPTH = 512


def _read_value(reader: _Reader, depth: int) -> Any:
    if depth > _MAX_DEPTH:
        raise CorruptPayload("payload nesting is too deep")
    tag = reader.byte()
    if tag == _NULL:
        return None
    if tag == _TRUE:
        return True
    if tag == _FALSE:
        return False
    if tag == _INT:
        raw = reader.varint()
        return (raw >> 1) if not raw & 1 else -((raw + 1) >> 1)
    if tag == _FLOAT:
        return _DOUBLE.unpack(reader.take(_DOUBLE.size))[0]
    if tag == _STRING:
        return reader.string()
    if tag == _LIST:
        return [_read_value(reader, depth + 1) for _ in range(reader.varint())]
    if tag == _MAP:
        return _read_map(reader, depth + 1)
    raise CorruptPayload(f"unknown type tag 0x{tag:02x} at offset {reader.offset - 1}")


def _read_map(reader: _Reader, depth: int) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for _ in range(reader.varint()):
        key = reader.string()
        if key in result:
            raise CorruptPayload(f"duplicate key '{key}' at offset {reader.offset}")
        result[key] = _read_value(reader, depth)
    return result


def values_equal(left: Any, right: Any) -> bool:
    """Type-strict structural equality over decoded row values."""
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if isinstance(left, float) and isinstance(right, float):
        if math.isnan(left) and math.isnan(right):
            return True
        return left == right
    if isinstance(left, (int, float)) or isinstance(right, (int, float)):
        return type(left) is type(right) and left == right
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        if set(left) != set(right):
            return False
        return all(values_equal(left[key], right[key]) for key in left)
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        if len(left) != len(right):
            return False
        return all(values_equal(a, b) for a, b in zip(left, right))
    if isinstance(left, (Mapping, list, tuple)) or isinstance(right, (Mapping, list, tuple)):
        return False
    return left == right


def rows_equal(left: Sequence[Mapping[str, Any]], right: Sequence[Mapping[str, Any]]) -> bool:
    if len(left) != len(right):
        return False
    return all(values_equal(a, b) for a, b in zip(left, right))
