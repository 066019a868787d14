"""Reading listpacks, the compact encoding used since Redis 7."""

import struct
from dataclasses import dataclass

from rdbkit.reader import BufferCursor, RdbError

LISTPACK_HEADER_SIZE = 6

_FIXED_INTS = {
    1: 2,
    2: 3,
    3: 4,
    4: 8,
}


@dataclass(frozen=True)
class ListpackEntry:
    """A decoded listpack entry and its encoded size including the backlen."""

    value: bytes | int
    size: int

    def as_bytes(self):
        """The entry as bytes, with integers written in decimal."""
        if isinstance(self.value, int):
            return str(self.value).encode("ascii")
        return self.value


def backlen_size(element_len):
    """Number of bytes the backlen field takes for an element of this length."""
    if element_len <= 127:
        return 1
    if element_len < (1 << 14) - 1:
        return 2
    if element_len < (1 << 21) - 1:
        return 3
    if element_len < (1 << 28) - 1:
        return 4
    return 5


def _finish(cursor, value, content_len):
    back = backlen_size(content_len)
    cursor.skip(back)
    return ListpackEntry(value, content_len + back)


def read_listpack_entry(cursor):
    """Read one listpack entry at ``cursor``."""
    header = cursor.read_byte()
    top = header >> 6
    if top in (0, 1):
        return _finish(cursor, header, 1)
    if top == 2:
        data = cursor.read_bytes(header & 0x3F)
        return _finish(cursor, data, 1 + len(data))

    nibble = header >> 4
    if nibble in (12, 13):
        value = ((header & 0x1F) << 8) | cursor.read_byte()
        if value >= 1 << 12:
            value -= 1 << 13
        return _finish(cursor, value, 2)
    if nibble == 14:
        length = ((header & 0x0F) << 8) | cursor.read_byte()
        data = cursor.read_bytes(length)
        return _finish(cursor, data, 2 + length)

    low = header & 0x0F
    if low == 0:
        length = struct.unpack("<I", cursor.read_bytes(4))[0]
        data = cursor.read_bytes(length)
        return _finish(cursor, data, 5 + length)
    width = _FIXED_INTS.get(low)
    if width is not None:
        value = int.from_bytes(cursor.read_bytes(width), "little", signed=True)
        return _finish(cursor, value, 1 + width)
    if low == 0x0F:
        raise RdbError("unexpected end")
    raise RdbError("unknown entry header")


def read_entry_as_bytes(cursor):
    """Read an entry and return it as bytes, formatting integers in decimal."""
    try:
        entry = read_listpack_entry(cursor)
    except RdbError as exc:
        raise RdbError(f"read from failed: {exc}") from exc
    return entry.as_bytes()


def read_entry_as_int(cursor):
    """Read an entry that must hold an integer."""
    try:
        entry = read_listpack_entry(cursor)
    except RdbError as exc:
        raise RdbError(f"read from failed: {exc}") from exc
    if not isinstance(entry.value, int):
        raise RdbError(f"{entry.value.decode('utf-8', 'replace')} is not a integer")
    return entry.value


def read_listpack(buf):
    """Decode a serialized listpack.

    Returns the entries as bytes and the encoded size of each entry.
    """
    if len(buf) < LISTPACK_HEADER_SIZE:
        raise RdbError("listpack header truncated")
    count = struct.unpack_from("<H", buf, 4)[0]
    cursor = BufferCursor(buf, LISTPACK_HEADER_SIZE)
    entries = []
    sizes = []
    for _ in range(count):
        entry = read_listpack_entry(cursor)
        entries.append(entry.as_bytes())
        sizes.append(entry.size)
    return entries, sizes