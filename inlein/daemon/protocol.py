"""Bencode protocol for daemon IPC.

Every message exchanged with the daemon is a bencoded dictionary, written
back to back on the socket with no extra framing.

Request format:
    {
        "op": "ping" | "shutdown" | ...,   # Requested operation
        ...                                 # Operation-specific keys
    }

Reply frames, in order, for each request:
    {"type": "ack", "op": <request op>}
    {"type": "log", "level": "warn", "msg": str}      # zero or more
    {"type": "response", "error": str, ...}           # error only on failure

Byte strings are handed back as str when they are valid UTF-8 and as
bytes otherwise.
"""

import io
from typing import Any, BinaryIO, Dict, Optional

from inlein.exceptions import DecodeError


def _encode_into(obj: Any, out: bytearray) -> None:
    if isinstance(obj, bool) or obj is None:
        raise TypeError(f"Cannot bencode {obj!r}")
    if isinstance(obj, int):
        out += b"i%de" % obj
    elif isinstance(obj, str):
        _encode_bytes(obj.encode("utf-8"), out)
    elif isinstance(obj, (bytes, bytearray)):
        _encode_bytes(bytes(obj), out)
    elif isinstance(obj, (list, tuple)):
        out += b"l"
        for item in obj:
            _encode_into(item, out)
        out += b"e"
    elif isinstance(obj, dict):
        items = []
        for key, value in obj.items():
            if isinstance(key, str):
                key = key.encode("utf-8")
            elif not isinstance(key, (bytes, bytearray)):
                raise TypeError(f"Dictionary keys must be strings, got {key!r}")
            items.append((bytes(key), value))
        items.sort(key=lambda item: item[0])
        out += b"d"
        for key, value in items:
            _encode_bytes(key, out)
            _encode_into(value, out)
        out += b"e"
    else:
        raise TypeError(f"Cannot bencode value of type {type(obj).__name__}")


def _encode_bytes(data: bytes, out: bytearray) -> None:
    out += b"%d:" % len(data)
    out += data


def encode(obj: Any) -> bytes:
    """
    Serialize a value to bencode.

    Args:
        obj: str, bytes, int, list/tuple or dict with string keys

    Returns:
        Bencoded bytes

    Raises:
        TypeError: If the value (or a nested value) has no bencode form
    """
    out = bytearray()
    _encode_into(obj, out)
    return bytes(out)


def decode(data: bytes) -> Any:
    """
    Deserialize exactly one bencoded value.

    Raises:
        DecodeError: If data is empty, malformed, or has trailing bytes
    """
    stream = io.BytesIO(data)
    value = BencodeReader(stream).read()
    if value is None:
        raise DecodeError("No bencoded value in input")
    if stream.read(1):
        raise DecodeError("Trailing data after bencoded value")
    return value


def _as_text(data: bytes) -> Any:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data


class BencodeWriter:
    """Writes bencoded values to a binary stream, flushing after each."""

    def __init__(self, stream: BinaryIO):
        self.stream = stream

    def write(self, obj: Any) -> None:
        self.stream.write(encode(obj))
        self.stream.flush()

    def close(self) -> None:
        self.stream.close()


class BencodeReader:
    """
    Reads bencoded values one at a time from a binary stream.

    The stream should be buffered (e.g. socket.makefile("rb")), since
    values are consumed a byte at a time.
    """

    def __init__(self, stream: BinaryIO):
        self.stream = stream

    def read(self) -> Any:
        """
        Read the next value.

        Returns:
            The decoded value, or None if the stream ended cleanly
            before a new value started

        Raises:
            DecodeError: If the stream ends mid-value or holds invalid bencode
        """
        first = self.stream.read(1)
        if not first:
            return None
        return self._read_value(first)

    def read_dict(self) -> Optional[Dict[str, Any]]:
        """Read the next value, which must be a dictionary. None at end of stream."""
        value = self.read()
        if value is None or isinstance(value, dict):
            return value
        raise DecodeError(f"Expected a dictionary, got {type(value).__name__}")

    def close(self) -> None:
        self.stream.close()

    def _next_byte(self) -> bytes:
        byte = self.stream.read(1)
        if not byte:
            raise DecodeError("Unexpected end of stream")
        return byte

    def _read_value(self, first: bytes) -> Any:
        if first == b"i":
            return self._read_int()
        if first == b"l":
            return self._read_list()
        if first == b"d":
            return self._read_dict_body()
        if first.isdigit():
            return _as_text(self._read_bytes(first))
        raise DecodeError(f"Invalid bencode token {first!r}")

    def _read_until(self, terminator: bytes, prefix: bytes = b"") -> bytes:
        buf = bytearray(prefix)
        while True:
            byte = self._next_byte()
            if byte == terminator:
                return bytes(buf)
            buf += byte

    def _read_int(self) -> int:
        raw = self._read_until(b"e")
        digits = raw[1:] if raw.startswith(b"-") else raw
        if (
            not digits.isdigit()
            or (len(digits) > 1 and digits.startswith(b"0"))
            or raw == b"-0"
        ):
            raise DecodeError(f"Invalid bencode integer {raw!r}")
        return int(raw)

    def _read_bytes(self, first: bytes) -> bytes:
        raw_length = self._read_until(b":", prefix=first)
        if not raw_length.isdigit():
            raise DecodeError(f"Invalid bencode string length {raw_length!r}")
        length = int(raw_length)
        data = self.stream.read(length)
        if len(data) < length:
            raise DecodeError("Unexpected end of stream in string")
        return data

    def _read_list(self) -> list:
        items = []
        while True:
            byte = self._next_byte()
            if byte == b"e":
                return items
            items.append(self._read_value(byte))

    def _read_dict_body(self) -> dict:
        result = {}
        while True:
            byte = self._next_byte()
            if byte == b"e":
                return result
            if not byte.isdigit():
                raise DecodeError("Dictionary keys must be byte strings")
            key = _as_text(self._read_bytes(byte))
            result[key] = self._read_value(self._next_byte())
