"""Reading list, set, hash and sorted-set values in all their encodings."""

import re
import struct

from rdbkit.listpack import read_listpack
from rdbkit.model import (
    QUICKLIST_NODE_CONTAINER_PACKED,
    QUICKLIST_NODE_CONTAINER_PLAIN,
    IntsetDetail,
    ListpackDetail,
    Quicklist2Detail,
    QuicklistDetail,
    ZiplistDetail,
    ZSetEntry,
)
from rdbkit.reader import BufferCursor, RdbError
from rdbkit.ziplist import read_ziplist

INTSET_HEADER_SIZE = 8
INTSET_WIDTHS = (2, 4, 8)

ZIPMAP_BIG_LEN = 253
ZIPMAP_ILLEGAL_LEN = 254
ZIPMAP_END = 255

_SCORE = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)",
    re.ASCII | re.IGNORECASE,
)


def _text(data):
    return bytes(data).decode("utf-8", "surrogateescape")


def _pairs(entries):
    if len(entries) % 2:
        raise RdbError("odd number of entries in a paired encoding")
    items = iter(entries)
    return zip(items, items)


def _parse_score(raw):
    try:
        literal = raw.decode("ascii")
    except UnicodeDecodeError as exc:
        raise RdbError(f"invalid score: {raw!r}") from exc
    if not _SCORE.fullmatch(literal):
        raise RdbError(f"invalid score: {literal!r}")
    return float(literal)


def _read_strings(reader):
    count, _ = reader.read_length()
    return [reader.read_string() for _ in range(count)]


def read_list(reader):
    """Read a plainly encoded list: a count followed by that many strings."""
    return _read_strings(reader)


def read_quicklist(reader):
    """Read a quicklist of ziplist pages; returns ``(values, QuicklistDetail)``."""
    page_count, _ = reader.read_length()
    values = []
    detail = QuicklistDetail()
    for _ in range(page_count):
        page = read_ziplist(reader.read_string())
        values.extend(page)
        detail.ziplist_struct.append(page)
    return values, detail


def read_quicklist2(reader):
    """Read a version 2 quicklist; returns ``(values, Quicklist2Detail)``."""
    node_count, _ = reader.read_length()
    values = []
    detail = Quicklist2Detail()
    for _ in range(node_count):
        container, _ = reader.read_length()
        if container == QUICKLIST_NODE_CONTAINER_PLAIN:
            values.append(reader.read_string())
            detail.node_encodings.append(QUICKLIST_NODE_CONTAINER_PLAIN)
        elif container == QUICKLIST_NODE_CONTAINER_PACKED:
            page, sizes = read_listpack(reader.read_string())
            values.extend(page)
            detail.node_encodings.append(QUICKLIST_NODE_CONTAINER_PACKED)
            detail.listpack_entry_size.append(sizes)
        else:
            raise RdbError("unknown quicklist node type")
    return values, detail


def read_set(reader):
    """Read a plainly encoded set: a count followed by that many members."""
    return _read_strings(reader)


def read_intset(reader):
    """Read an intset; members come back as decimal bytes.

    Returns ``(members, IntsetDetail)``.
    """
    buf = reader.read_string()
    if len(buf) < INTSET_HEADER_SIZE:
        raise RdbError("intset header truncated")
    width, cardinality = struct.unpack_from("<II", buf)
    if width not in INTSET_WIDTHS:
        raise RdbError(f"unknown intset encoding: {width}")
    cursor = BufferCursor(buf, INTSET_HEADER_SIZE)
    members = [
        str(int.from_bytes(cursor.read_bytes(width), "little", signed=True)).encode("ascii")
        for _ in range(cardinality)
    ]
    return members, IntsetDetail(raw_string_size=len(buf))


def read_listpack_set(reader):
    """Read a set stored as a listpack; returns ``(members, ListpackDetail)``."""
    buf = reader.read_string()
    members, _ = read_listpack(buf)
    return members, ListpackDetail(raw_string_size=len(buf))


def read_hash(reader):
    """Read a plainly encoded hash as a dict of field name to value bytes."""
    count, _ = reader.read_length()
    mapping = {}
    for _ in range(count):
        name = _text(reader.read_string())
        mapping[name] = reader.read_string()
    return mapping


def _zipmap_entry_len(cursor, read_free):
    """Return ``(length, free)``; length is None at the end marker."""
    first = cursor.read_byte()
    if first == ZIPMAP_BIG_LEN:
        raw = cursor.read_bytes(5)
        return struct.unpack(">I", raw[:4])[0], raw[4]
    if first == ZIPMAP_ILLEGAL_LEN:
        raise RdbError("illegal zip map item length")
    if first == ZIPMAP_END:
        return None, 0
    free = cursor.read_byte() if read_free else 0
    return first, free


def _zipmap_entry(cursor, read_free):
    length, free = _zipmap_entry_len(cursor, read_free)
    if length is None:
        return b""
    value = cursor.read_bytes(length)
    cursor.skip(free)
    return value


def _count_zipmap_entries(cursor):
    count = 0
    while True:
        length, free = _zipmap_entry_len(cursor, count % 2 == 1)
        if length is None:
            return count
        cursor.skip(length + free)
        count += 1


def read_zipmap_hash(reader):
    """Read a hash stored in the legacy zipmap encoding."""
    buf = reader.read_string()
    cursor = BufferCursor(buf)
    count = cursor.read_byte()
    if count > ZIPMAP_ILLEGAL_LEN:
        count = _count_zipmap_entries(BufferCursor(buf, cursor.pos)) // 2
    mapping = {}
    for _ in range(count):
        name = _text(_zipmap_entry(cursor, False))
        mapping[name] = _zipmap_entry(cursor, True)
    return mapping


def read_ziplist_hash(reader):
    """Read a hash stored as a ziplist; returns ``(mapping, ZiplistDetail)``."""
    buf = reader.read_string()
    mapping = {_text(name): value for name, value in _pairs(read_ziplist(buf))}
    return mapping, ZiplistDetail(raw_string_size=len(buf))


def read_listpack_hash(reader):
    """Read a hash stored as a listpack; returns ``(mapping, ListpackDetail)``."""
    buf = reader.read_string()
    entries, _ = read_listpack(buf)
    mapping = {_text(name): value for name, value in _pairs(entries)}
    return mapping, ListpackDetail(raw_string_size=len(buf))


def read_zset(reader, binary_scores):
    """Read a plainly encoded sorted set.

    Scores are binary doubles when ``binary_scores`` is true, otherwise
    length-prefixed decimal literals.
    """
    count, _ = reader.read_length()
    read_score = reader.read_float if binary_scores else reader.read_literal_float
    entries = []
    for _ in range(count):
        member = _text(reader.read_string())
        entries.append(ZSetEntry(member=member, score=read_score()))
    return entries


def _zset_entries(raw_entries):
    return [
        ZSetEntry(member=_text(member), score=_parse_score(score))
        for member, score in _pairs(raw_entries)
    ]


def read_ziplist_zset(reader):
    """Read a sorted set stored as a ziplist; returns ``(entries, ZiplistDetail)``."""
    buf = reader.read_string()
    entries = _zset_entries(read_ziplist(buf))
    return entries, ZiplistDetail(raw_string_size=len(buf))


def read_listpack_zset(reader):
    """Read a sorted set stored as a listpack; returns ``(entries, ListpackDetail)``."""
    buf = reader.read_string()
    raw_entries, _ = read_listpack(buf)
    return _zset_entries(raw_entries), ListpackDetail(raw_string_size=len(buf))