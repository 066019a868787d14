"""Low-level reading of RDB primitives: lengths, strings and numbers."""

import math
import struct

LEN_6BIT = 0
LEN_14BIT = 1
LEN_32OR64BIT = 2
LEN_SPECIAL = 3
LEN_32BIT = 0x80
LEN_64BIT = 0x81

ENCODE_INT8 = 0
ENCODE_INT16 = 1
ENCODE_INT32 = 2
ENCODE_LZF = 3


class RdbError(Exception):
    """Raised when RDB data is malformed."""


class BufferCursor:
    """A read position over an in-memory byte buffer."""

    __slots__ = ("data", "pos")

    def __init__(self, data, pos=0):
        self.data = data
        self.pos = pos

    def read_byte(self):
        if self.pos >= len(self.data):
            raise RdbError("cursor out of range")
        value = self.data[self.pos]
        self.pos += 1
        return value

    def read_bytes(self, size):
        end = self.pos + size
        if size < 0 or end > len(self.data):
            raise RdbError("cursor out of range")
        result = bytes(self.data[self.pos:end])
        self.pos = end
        return result

    def skip(self, size):
        """Move forward without reading; bounds are checked by the next read."""
        self.pos += size


def lzf_decompress(data, out_len):
    """Decompress LZF data that must expand to exactly ``out_len`` bytes."""
    out = bytearray()
    ip = 0
    size = len(data)
    while ip < size:
        ctrl = data[ip]
        ip += 1
        if ctrl < 32:
            run = ctrl + 1
            if ip + run > size:
                raise RdbError("lzf: literal run exceeds input")
            out += data[ip:ip + run]
            ip += run
        else:
            length = ctrl >> 5
            ref = len(out) - ((ctrl & 0x1F) << 8) - 1
            if length == 7:
                if ip >= size:
                    raise RdbError("lzf: truncated back reference")
                length += data[ip]
                ip += 1
            if ip >= size:
                raise RdbError("lzf: truncated back reference")
            ref -= data[ip]
            ip += 1
            length += 2
            if ref < 0:
                raise RdbError("lzf: back reference before start of output")
            if ref + length <= len(out):
                out += out[ref:ref + length]
            else:
                for offset in range(length):
                    out.append(out[ref + offset])
        if len(out) > out_len:
            raise RdbError("lzf: output exceeds expected length")
    if len(out) != out_len:
        raise RdbError(f"lzf: expected {out_len} bytes, got {len(out)}")
    return bytes(out)


class RdbReader:
    """Reads RDB primitives from a binary stream and counts consumed bytes."""

    def __init__(self, stream):
        self._stream = stream
        self.count = 0

    def read_exact(self, size):
        """Read exactly ``size`` bytes; raise EOFError if the input ends first."""
        if size == 0:
            return b""
        chunks = []
        remaining = size
        while remaining > 0:
            chunk = self._stream.read(remaining)
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
        if remaining:
            if remaining == size:
                raise EOFError("end of input")
            raise EOFError("unexpected end of input")
        self.count += size
        return b"".join(chunks)

    def read_byte(self):
        return self.read_exact(1)[0]

    def read_length(self):
        """Read a length encoding; returns ``(length, special)``."""
        first = self.read_byte()
        kind = (first & 0xC0) >> 6
        if kind == LEN_6BIT:
            return first & 0x3F, False
        if kind == LEN_14BIT:
            return ((first & 0x3F) << 8) | self.read_byte(), False
        if kind == LEN_32OR64BIT:
            if first == LEN_32BIT:
                return struct.unpack(">I", self.read_exact(4))[0], False
            if first == LEN_64BIT:
                return struct.unpack(">Q", self.read_exact(8))[0], False
            raise RdbError(f"illegal length encoding: {first:x}")
        return first & 0x3F, True

    def read_string(self):
        length, special = self.read_length()
        if not special:
            return self.read_exact(length)
        if length == ENCODE_INT8:
            value = struct.unpack("<b", self.read_exact(1))[0]
        elif length == ENCODE_INT16:
            value = self.read_int16()
        elif length == ENCODE_INT32:
            value = self.read_int32()
        elif length == ENCODE_LZF:
            return self._read_lzf()
        else:
            raise RdbError("unknown string encoding type")
        return str(value).encode("ascii")

    def _read_lzf(self):
        in_len, _ = self.read_length()
        out_len, _ = self.read_length()
        return lzf_decompress(self.read_exact(in_len), out_len)

    def read_int16(self):
        return struct.unpack("<h", self.read_exact(2))[0]

    def read_int32(self):
        return struct.unpack("<i", self.read_exact(4))[0]

    def read_float(self):
        """Read a little-endian IEEE 754 double."""
        return struct.unpack("<d", self.read_exact(8))[0]

    def read_float32(self):
        return struct.unpack("<f", self.read_exact(4))[0]

    def read_literal_float(self):
        """Read a score stored as a length-prefixed decimal string."""
        first = self.read_byte()
        if first == 0xFF:
            return -math.inf
        if first == 0xFE:
            return math.inf
        if first == 0xFD:
            return math.nan
        raw = self.read_exact(first)
        try:
            return float(raw.decode("ascii"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise RdbError(f"invalid float literal: {raw!r}") from exc