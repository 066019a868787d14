"""Encoding of RDB primitives: lengths, strings, intsets and doubles."""

import random
import string
import struct

LEN_14BIT_MASK = 0x40
LEN_32BIT = 0x80
LEN_64BIT = 0x81

MAX_UINT6 = (1 << 6) - 1
MAX_UINT14 = (1 << 14) - 1
MAX_UINT32 = (1 << 32) - 1
MAX_UINT64 = (1 << 64) - 1

MIN_INT8, MAX_INT8 = -(1 << 7), (1 << 7) - 1
MIN_INT16, MAX_INT16 = -(1 << 15), (1 << 15) - 1
MIN_INT32, MAX_INT32 = -(1 << 31), (1 << 31) - 1
MAX_INT64 = (1 << 63) - 1

ENCODE_INT8_PREFIX = 0xC0
ENCODE_INT16_PREFIX = 0xC1
ENCODE_INT32_PREFIX = 0xC2
ENCODE_LZF_PREFIX = 0xC3

# Strings this short never shrink under LZF.
LZF_MIN_LENGTH = 20

_LZF_MAX_LITERAL = 32
_LZF_MAX_OFFSET = 1 << 13
_LZF_MAX_MATCH = 7 + 255 + 2

_LETTERS = string.ascii_lowercase + string.ascii_uppercase + string.digits


def _as_bytes(value):
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def _plain_decimal(text):
    """Return ``text`` as ASCII digits if it is a canonical non-negative number."""
    if isinstance(text, str):
        try:
            data = text.encode("ascii")
        except UnicodeEncodeError:
            return None
    else:
        data = bytes(text)
    if not data or not data.isdigit():
        return None
    if data[:1] == b"0" and len(data) > 1:
        return None
    return data


def is_encodable_int32(text):
    """Return the integer ``text`` spells if it can be stored as a 32-bit integer.

    Only plain non-negative decimals without leading zeros or signs qualify,
    so that decoding gives back exactly the same string; otherwise ``None``.
    """
    data = _plain_decimal(text)
    if data is None:
        return None
    value = int(data)
    if value > MAX_INT32:
        return None
    return value


def encode_length(value):
    """Encode ``value`` in the RDB length encoding."""
    if value < 0 or value > MAX_UINT64:
        raise ValueError(f"length out of range: {value}")
    if value <= MAX_UINT6:
        return bytes([value])
    if value <= MAX_UINT14:
        return bytes([(value >> 8) | LEN_14BIT_MASK, value & 0xFF])
    if value <= MAX_UINT32:
        return bytes([LEN_32BIT]) + struct.pack(">I", value)
    return bytes([LEN_64BIT]) + struct.pack(">Q", value)


def encode_int_string(text):
    """Encode ``text`` as an integer-encoded string, or return ``None``."""
    value = is_encodable_int32(text)
    if value is None:
        return None
    if MIN_INT8 <= value <= MAX_INT8:
        return bytes([ENCODE_INT8_PREFIX]) + struct.pack("<b", value)
    if MIN_INT16 <= value <= MAX_INT16:
        return bytes([ENCODE_INT16_PREFIX]) + struct.pack("<h", value)
    return bytes([ENCODE_INT32_PREFIX]) + struct.pack("<i", value)


def lzf_compress(data):
    """Compress ``data`` with LZF; ``None`` if the result would not be smaller."""
    data = bytes(data)
    size = len(data)
    out = bytearray()
    literal = bytearray()
    table = {}

    def flush_literal():
        for start in range(0, len(literal), _LZF_MAX_LITERAL):
            chunk = literal[start:start + _LZF_MAX_LITERAL]
            out.append(len(chunk) - 1)
            out.extend(chunk)
        literal.clear()

    pos = 0
    while pos < size:
        if pos + 2 < size:
            key = data[pos:pos + 3]
            ref = table.get(key)
            table[key] = pos
            if ref is not None and pos - ref - 1 < _LZF_MAX_OFFSET:
                offset = pos - ref - 1
                limit = min(size - pos, _LZF_MAX_MATCH)
                length = 3
                while length < limit and data[ref + length] == data[pos + length]:
                    length += 1
                flush_literal()
                code = length - 2
                if code < 7:
                    out.append((code << 5) | (offset >> 8))
                else:
                    out.append((7 << 5) | (offset >> 8))
                    out.append(code - 7)
                out.append(offset & 0xFF)
                for inner in range(pos + 1, min(pos + length, size - 2)):
                    table[data[inner:inner + 3]] = inner
                pos += length
                continue
        literal.append(data[pos])
        pos += 1
    flush_literal()

    if len(out) >= size:
        return None
    return bytes(out)


def _encode_lzf_string(data):
    compressed = lzf_compress(data)
    if compressed is None:
        return None
    return (
        bytes([ENCODE_LZF_PREFIX])
        + encode_length(len(compressed))
        + encode_length(len(data))
        + compressed
    )


def encode_raw_string(value, compress):
    """Encode ``value`` as a string without trying the integer encoding.

    With ``compress`` set, strings longer than 20 bytes are LZF-compressed
    when that makes them smaller.
    """
    data = _as_bytes(value)
    if compress and len(data) > LZF_MIN_LENGTH:
        encoded = _encode_lzf_string(data)
        if encoded is not None:
            return encoded
    return encode_length(len(data)) + data


def encode_string(value, compress):
    """Encode ``value`` as an RDB string, preferring the integer encoding."""
    encoded = encode_int_string(value)
    if encoded is not None:
        return encoded
    return encode_raw_string(value, compress)


def encode_intset(values):
    """Serialize ``values`` as an intset buffer, or return ``None``.

    Every value must be a canonical non-negative decimal fitting a signed
    64-bit integer. Members are sorted and stored in the narrowest width.
    """
    numbers = []
    for value in values:
        data = _plain_decimal(value)
        if data is None:
            return None
        number = int(data)
        if number > MAX_INT64:
            return None
        numbers.append(number)
    numbers.sort()

    if not numbers or (numbers[0] >= MIN_INT16 and numbers[-1] <= MAX_INT16):
        width = 2
    elif numbers[0] >= MIN_INT32 and numbers[-1] <= MAX_INT32:
        width = 4
    else:
        width = 8
    header = struct.pack("<II", width, len(numbers) & MAX_UINT32)
    body = b"".join(n.to_bytes(width, "little", signed=True) for n in numbers)
    return header + body


def encode_float64(value):
    """Encode ``value`` as a little-endian IEEE 754 double."""
    return struct.pack("<d", value)


def random_string(length):
    """A random string of ``length`` ASCII letters and digits."""
    return "".join(random.choices(_LETTERS, k=length))