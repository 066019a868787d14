import random
import struct

import pytest

from rdbkit.reader import BufferCursor, RdbError
from rdbkit.ziplist import (
    build_ziplist,
    encode_ziplist_entry,
    is_encodable_int64,
    read_ziplist,
    read_ziplist_entry,
)

_LETTERS = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"

MAX_INT8, MIN_INT8 = 127, -128
MAX_INT16, MIN_INT16 = 32767, -32768
MAX_INT32, MIN_INT32 = 2147483647, -2147483648
MAX_INT64, MIN_INT64 = 9223372036854775807, -9223372036854775808


def _rand_string(rng, length):
    return "".join(rng.choice(_LETTERS) for _ in range(length))


def _cases():
    rng = random.Random(7)
    return [
        "",
        "0",
        "1",
        "13",
        "127",
        "32766",
        "8388607",
        "16777216",
        "2147483647",
        "21474836471",
        "a",
        "abc",
        "007",
        "+0",
        "-0",
        "+1",
        "-1",
        "0x11",
        "0o00",
        str(MAX_INT8),
        str(MIN_INT8),
        str(MAX_INT16),
        str(MIN_INT16),
        str(MAX_INT32),
        str(MAX_INT32) + "1",
        str(MIN_INT32),
        str(MIN_INT32) + "1",
        str(MAX_INT64),
        str(MAX_INT64) + "1",
        str(MIN_INT64),
        str(MIN_INT64) + "1",
        _rand_string(rng, 60),
        _rand_string(rng, 1638),
        _rand_string(rng, 10000),
    ]


def test_ziplist_round_trip_of_edge_values():
    values = _cases()
    actual = read_ziplist(build_ziplist(values))
    assert actual == [v.encode() for v in values]


def test_random_ziplist_round_trip():
    rng = random.Random(12345)
    for _ in range(1000):
        values = [_rand_string(rng, rng.randrange(50)) for _ in range(32)]
        assert read_ziplist(build_ziplist(values)) == [v.encode() for v in values]


def test_long_string_uses_32bit_length():
    value = "x" * 20000
    entry = encode_ziplist_entry(0, value)
    assert entry[1] == 0x80
    assert read_ziplist(build_ziplist([value])) == [value.encode()]


def test_header_fields_describe_the_body():
    values = ["a", "12", "hello", "300000"]
    buf = build_ziplist(values)
    total, tail, count = struct.unpack_from("<IIH", buf, 0)
    assert total == len(buf)
    assert count == len(values)
    assert buf[-1] == 0xFF
    assert read_ziplist_entry(BufferCursor(buf, tail)) == b"300000"


def test_empty_ziplist():
    buf = build_ziplist([])
    assert len(buf) == 11
    assert read_ziplist(buf) == []


def test_small_int_wire_bytes():
    assert encode_ziplist_entry(0, "5") == bytes([0x00, 0xF6])
    assert encode_ziplist_entry(0, "0") == bytes([0x00, 0xF1])


def test_big_prev_len_is_written_in_five_bytes():
    entry = encode_ziplist_entry(0x100, "a")
    assert entry[:5] == bytes([0xFE]) + struct.pack("<I", 0x100)
    assert read_ziplist_entry(BufferCursor(entry)) == b"a"


def test_bytes_values_are_accepted():
    assert read_ziplist(build_ziplist([b"abc", b"42"])) == [b"abc", b"42"]


@pytest.mark.parametrize(
    "text, expected",
    [
        ("0", 0),
        ("42", 42),
        (str(MAX_INT64), MAX_INT64),
        (str(MAX_INT64 + 1), None),
        ("", None),
        ("007", None),
        ("-1", None),
        ("+1", None),
        ("0x11", None),
        ("\uff11", None),
        (b"123", 123),
    ],
)
def test_is_encodable_int64(text, expected):
    assert is_encodable_int64(text) == expected


def test_unknown_entry_header_raises():
    with pytest.raises(RdbError):
        read_ziplist_entry(BufferCursor(bytes([0x00, 0xC1])))


def test_truncated_entry_raises():
    with pytest.raises(RdbError):
        read_ziplist_entry(BufferCursor(bytes([0x00, 0x05]) + b"ab"))


def test_truncated_header_raises():
    with pytest.raises(RdbError):
        read_ziplist(b"\x00" * 5)