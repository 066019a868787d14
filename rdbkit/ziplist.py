"""Reading and building ziplists, the compact encoding of small lists."""

import struct

from rdbkit.reader import BufferCursor, RdbError

ZIP_STR_06B = 0
ZIP_STR_14B = 1
ZIP_STR_32B = 2

ZIP_INT_04B = 0x0F
ZIP_INT_08B = 0xFE
ZIP_INT_16B = 0xC0
ZIP_INT_24B = 0xF0
ZIP_INT_32B = 0xD0
ZIP_INT_64B = 0xE0

ZIP_BIG_PREVLEN = 0xFE
ZIP_END = 0xFF

HEADER_SIZE = 10

MAX_UINT6 = (1 << 6) - 1
MAX_UINT14 = (1 << 14) - 1
MAX_UINT32 = (1 << 32) - 1
MIN_INT8, MAX_INT8 = -(1 << 7), (1 << 7) - 1
MIN_INT24, MAX_INT24 = -(1 << 23), (1 << 23) - 1
MIN_INT32, MAX_INT32 = -(1 << 31), (1 << 31) - 1
MAX_INT64 = (1 << 63) - 1

_LEN_14BIT_MASK = 0x40

_INT_FORMATS = {
    ZIP_INT_08B: "<b",
    ZIP_INT_16B: "<h",
    ZIP_INT_32B: "<i",
    ZIP_INT_64B: "<q",
}


def _as_bytes(value):
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def is_encodable_int64(text):
    """Return the integer ``text`` spells if it survives an integer round trip.

    Only plain non-negative decimal numbers without leading zeros or signs
    that fit in a signed 64-bit integer qualify; otherwise ``None``.
    """
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
    value = int(data)
    if value > MAX_INT64:
        return None
    return value


def read_ziplist_entry(cursor):
    """Read one ziplist entry at ``cursor``; integers come back as decimal bytes."""
    if cursor.read_byte() == ZIP_BIG_PREVLEN:
        cursor.skip(4)
    header = cursor.read_byte()
    kind = header >> 6
    if kind == ZIP_STR_06B:
        return cursor.read_bytes(header & 0x3F)
    if kind == ZIP_STR_14B:
        length = ((header & 0x3F) << 8) | cursor.read_byte()
        return cursor.read_bytes(length)
    if kind == ZIP_STR_32B:
        length = struct.unpack(">I", cursor.read_bytes(4))[0]
        return cursor.read_bytes(length)
    fmt = _INT_FORMATS.get(header)
    if fmt is not None:
        value = struct.unpack(fmt, cursor.read_bytes(struct.calcsize(fmt)))[0]
    elif header == ZIP_INT_24B:
        value = int.from_bytes(cursor.read_bytes(3), "little", signed=True)
    elif header >> 4 == ZIP_INT_04B:
        value = (header & 0x0F) - 1
    else:
        raise RdbError("unknown entry header")
    return str(value).encode("ascii")


def read_ziplist(buf):
    """Decode every entry of a serialized ziplist."""
    if len(buf) < HEADER_SIZE:
        raise RdbError("ziplist header truncated")
    count = struct.unpack_from("<H", buf, 8)[0]
    cursor = BufferCursor(buf, HEADER_SIZE)
    return [read_ziplist_entry(cursor) for _ in range(count)]


def encode_ziplist_entry(prev_len, value):
    """Encode ``value`` as a ziplist entry following one of ``prev_len`` bytes."""
    data = _as_bytes(value)
    out = bytearray()
    if prev_len < ZIP_BIG_PREVLEN:
        out.append(prev_len)
    else:
        out.append(ZIP_BIG_PREVLEN)
        out += struct.pack("<I", prev_len)

    number = is_encodable_int64(data)
    if number is not None:
        if 0 <= number <= 12:
            out.append(0xF0 | (number + 1))
        elif MIN_INT8 <= number <= MAX_INT8:
            out.append(ZIP_INT_08B)
            out += struct.pack("<b", number)
        elif MIN_INT24 <= number <= MAX_INT24:
            out.append(ZIP_INT_24B)
            out += number.to_bytes(3, "little", signed=True)
        elif MIN_INT32 <= number <= MAX_INT32:
            out.append(ZIP_INT_32B)
            out += struct.pack("<i", number)
        else:
            out.append(ZIP_INT_64B)
            out += struct.pack("<q", number)
        return bytes(out)

    length = len(data)
    if length <= MAX_UINT6:
        out.append(length)
    elif length <= MAX_UINT14:
        out += bytes([(length >> 8) | _LEN_14BIT_MASK, length & 0xFF])
    elif length <= MAX_UINT32:
        out.append(ZIP_STR_32B << 6)
        out += struct.pack(">I", length)
    else:
        raise ValueError("string too large for a ziplist entry")
    out += data
    return bytes(out)


def build_ziplist(values):
    """Serialize ``values`` (str or bytes) as a complete ziplist."""
    body = bytearray()
    tail = HEADER_SIZE
    prev_len = 0
    for value in values:
        tail = HEADER_SIZE + len(body)
        entry = encode_ziplist_entry(prev_len, value)
        body += entry
        prev_len = len(entry)
    total = HEADER_SIZE + len(body) + 1
    header = struct.pack("<IIH", total, tail, len(values) & 0xFFFF)
    return header + bytes(body) + bytes([ZIP_END])