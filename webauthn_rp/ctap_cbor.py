"""CBOR encoding and decoding in the CTAP2 canonical form."""

from __future__ import annotations

import struct
from typing import Any

import cbor2

_MAX_NESTED_LEVELS = 4
_UINT64_LIMIT = 1 << 64


class _Decoder:
    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    def _take(self, count: int) -> bytes:
        end = self._pos + count
        if end > len(self._data):
            raise ValueError("unexpected end of CBOR data")
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def _argument(self, info: int) -> int:
        if info < 24:
            return info
        if info in (24, 25, 26, 27):
            return int.from_bytes(self._take(1 << (info - 24)), "big")
        if info == 31:
            raise ValueError("indefinite-length CBOR items are forbidden")
        raise ValueError(f"invalid CBOR additional information {info}")

    def _simple(self, info: int) -> Any:
        if info == 20:
            return False
        if info == 21:
            return True
        if info in (22, 23):
            return None
        if info == 25:
            return struct.unpack(">e", self._take(2))[0]
        if info == 26:
            return struct.unpack(">f", self._take(4))[0]
        if info == 27:
            return struct.unpack(">d", self._take(8))[0]
        if info == 31:
            raise ValueError("indefinite-length CBOR items are forbidden")
        raise ValueError(f"unsupported CBOR simple value {info}")

    def decode(self, depth: int = 0) -> Any:
        initial = self._take(1)[0]
        major, info = initial >> 5, initial & 0x1F
        if major == 7:
            return self._simple(info)
        if major == 6:
            raise ValueError("CBOR tags are forbidden")
        argument = self._argument(info)
        if major == 0:
            return argument
        if major == 1:
            return -1 - argument
        if major == 2:
            return self._take(argument)
        if major == 3:
            try:
                return self._take(argument).decode("utf-8")
            except UnicodeDecodeError as exc:
                raise ValueError("invalid UTF-8 in CBOR text string") from exc

        depth += 1
        if depth > _MAX_NESTED_LEVELS:
            raise ValueError(f"exceeded max nested level {_MAX_NESTED_LEVELS}")
        if major == 4:
            return [self.decode(depth) for _ in range(argument)]

        result: dict[Any, Any] = {}
        for _ in range(argument):
            key = self.decode(depth)
            try:
                duplicate = key in result
            except TypeError as exc:
                raise ValueError("invalid CBOR map key type") from exc
            if duplicate:
                raise ValueError(f"duplicate CBOR map key {key!r}")
            result[key] = self.decode(depth)
        return result


def unmarshal(data: bytes) -> Any:
    """Decode the first CBOR item in data, enforcing the CTAP2 restrictions.

    Duplicate map keys, indefinite lengths, tags and nesting deeper than four
    levels raise ValueError. Trailing bytes after the first item are ignored.
    """
    return _Decoder(data).decode()


def _check_encodable(value: Any, depth: int = 0) -> None:
    if value is None or isinstance(value, (bool, float, str, bytes, bytearray)):
        return
    if isinstance(value, int):
        if not -_UINT64_LIMIT <= value < _UINT64_LIMIT:
            raise ValueError("integer out of CBOR range")
        return
    if isinstance(value, (list, tuple)):
        for item in value:
            _check_encodable(item, depth + 1)
        return
    if isinstance(value, dict):
        for key, item in value.items():
            _check_encodable(key, depth + 1)
            _check_encodable(item, depth + 1)
        return
    raise TypeError(f"cannot encode value of type {type(value).__name__} as CTAP2 CBOR")


def marshal(value: Any) -> bytes:
    """Encode value as CBOR in the CTAP2 canonical form."""
    _check_encodable(value)
    try:
        return cbor2.dumps(value, canonical=True)
    except cbor2.CBOREncodeError as exc:
        raise ValueError(str(exc)) from exc