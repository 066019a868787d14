import io
import math
import struct

import pytest

from rdbkit.reader import BufferCursor, RdbError, RdbReader, lzf_decompress


def reader_for(data):
    return RdbReader(io.BytesIO(data))


def test_read_length_encodings():
    data = (
        b"\x20"
        + b"\x60\x00"
        + b"\x80\x80\x00\x00\x00"
        + b"\x81\x80" + b"\x00" * 7
    )
    reader = reader_for(data)
    for expected in (1 << 5, 1 << 13, 1 << 31, 1 << 63):
        assert reader.read_length() == (expected, False)
    assert reader.count == len(data)


def test_read_length_special_flag():
    length, special = reader_for(b"\xc3").read_length()
    assert special is True
    assert length == 3


def test_illegal_length_encoding():
    with pytest.raises(RdbError, match="illegal length encoding"):
        reader_for(b"\x82").read_length()


def test_read_plain_strings():
    reader = reader_for(b"\x00\x03abc")
    assert reader.read_string() == b""
    assert reader.read_string() == b"abc"


@pytest.mark.parametrize(
    ("data", "expected"),
    [
        (b"\xc0\x7f", b"127"),
        (b"\xc0\x80", b"-128"),
        (b"\xc1\xff\x7f", b"32767"),
        (b"\xc2\xff\xff\xff\x7f", b"2147483647"),
        (b"\xc2\x00\x00\x00\x80", b"-2147483648"),
    ],
)
def test_read_integer_strings(data, expected):
    assert reader_for(data).read_string() == expected


def test_unknown_string_encoding():
    with pytest.raises(RdbError):
        reader_for(b"\xc4").read_string()


def test_read_lzf_string():
    payload = b"\x02abc\x20\x02"
    reader = reader_for(b"\xc3\x06\x06" + payload)
    assert reader.read_string() == b"abc" * 2


def test_lzf_long_back_reference():
    assert lzf_decompress(b"\x02abc\xe0\x00\x02", 12) == b"abc" * 4


def test_lzf_overlapping_back_reference():
    assert lzf_decompress(b"\x00a\xe0\x00\x00", 10) == b"a" * 10


def test_lzf_literal_only():
    assert lzf_decompress(b"\x02abc", 3) == b"abc"


@pytest.mark.parametrize(
    ("data", "out_len"),
    [
        (b"\x05ab", 6),
        (b"\x20\x05", 3),
        (b"\x02abc", 4),
        (b"\x02abc\x20", 6),
    ],
)
def test_lzf_corrupt_input(data, out_len):
    with pytest.raises(RdbError):
        lzf_decompress(data, out_len)


def test_read_literal_float_special_values():
    reader = reader_for(b"\xff\xfe\xfd")
    assert reader.read_literal_float() == -math.inf
    assert reader.read_literal_float() == math.inf
    assert math.isnan(reader.read_literal_float())


def test_read_literal_float_decimal():
    assert reader_for(b"\x043.14").read_literal_float() == 3.14


def test_read_literal_float_invalid():
    with pytest.raises(RdbError):
        reader_for(b"\x03abc").read_literal_float()


def test_read_binary_floats():
    reader = reader_for(struct.pack("<d", 2.71828) + struct.pack("<f", 1.5))
    assert reader.read_float() == 2.71828
    assert reader.read_float32() == 1.5


def test_read_signed_integers():
    reader = reader_for(struct.pack("<h", -32768) + struct.pack("<i", -2147483648))
    assert reader.read_int16() == -32768
    assert reader.read_int32() == -2147483648


def test_eof_raises():
    with pytest.raises(EOFError):
        reader_for(b"").read_byte()
    with pytest.raises(EOFError):
        reader_for(b"\x05ab").read_string()


def test_count_unchanged_on_failed_read():
    reader = reader_for(b"\x01\x02")
    reader.read_byte()
    with pytest.raises(EOFError):
        reader.read_exact(4)
    assert reader.count == 1


def test_buffer_cursor_reads_and_skips():
    cursor = BufferCursor(b"abcdef")
    assert cursor.read_byte() == ord("a")
    assert cursor.read_bytes(2) == b"bc"
    cursor.skip(1)
    assert cursor.read_bytes(2) == b"ef"
    assert cursor.pos == len(b"abcdef")


def test_buffer_cursor_out_of_range():
    cursor = BufferCursor(b"ab")
    with pytest.raises(RdbError, match="cursor out of range"):
        cursor.read_bytes(3)
    cursor.skip(2)
    with pytest.raises(RdbError, match="cursor out of range"):
        cursor.read_byte()