import io
import struct

import pytest

from rdbkit.module import (
    ModuleOpcode,
    ModuleTypeHandler,
    module_enc_version,
    module_id_for,
    module_type_name,
    read_module_type,
    skip_module_data,
)
from rdbkit.reader import RdbError, RdbReader

TEST_MODULE_TYPE = "test-type"
EXPECTED_STR_DATA = b"testdata123"
EXPECTED_UINT = 123
EXPECTED_RESULT = "expected-result"


def _length(value):
    if value < 64:
        return bytes([value])
    return b"\x81" + struct.pack(">Q", value)


def _string(data):
    return _length(len(data)) + data


def _module_payload():
    return (
        _length(module_id_for(TEST_MODULE_TYPE, 42))
        + _length(ModuleOpcode.STRING)
        + _string(EXPECTED_STR_DATA)
        + _length(ModuleOpcode.UINT)
        + _length(EXPECTED_UINT)
        + _length(ModuleOpcode.EOF)
    )


def _reader(data):
    return RdbReader(io.BytesIO(data))


def test_module_type_with_parse():
    seen = {}

    def parse(handler, enc_version):
        seen["version"] = enc_version
        seen["op1"] = handler.read_opcode()
        seen["string"] = handler.read_string()
        seen["op2"] = handler.read_opcode()
        seen["uint"] = handler.read_uint()
        seen["op3"] = handler.read_opcode()
        return EXPECTED_RESULT

    data = _module_payload()
    reader = _reader(data)
    module_type, value = read_module_type(reader, {TEST_MODULE_TYPE: parse})
    assert module_type == TEST_MODULE_TYPE
    assert value == EXPECTED_RESULT
    assert seen == {
        "version": 42,
        "op1": ModuleOpcode.STRING,
        "string": EXPECTED_STR_DATA,
        "op2": ModuleOpcode.UINT,
        "uint": EXPECTED_UINT,
        "op3": ModuleOpcode.EOF,
    }
    assert reader.count == len(data)


def test_module_type_skip_parse():
    data = _module_payload()
    reader = _reader(data)
    module_type, value = read_module_type(reader, {})
    assert module_type == TEST_MODULE_TYPE
    assert value is None
    assert reader.count == len(data)


def test_correct_module_type_encode_decode():
    module_id = module_id_for(TEST_MODULE_TYPE, 42)
    assert module_type_name(module_id) == TEST_MODULE_TYPE
    assert module_enc_version(module_id) == 42


def test_skip_all_value_kinds():
    data = (
        _length(ModuleOpcode.FLOAT)
        + struct.pack("<f", 1.5)
        + _length(ModuleOpcode.DOUBLE)
        + struct.pack("<d", 2.5)
        + _length(ModuleOpcode.SINT)
        + _length(7)
        + _length(ModuleOpcode.STRING)
        + _string(b"abc")
        + _length(ModuleOpcode.EOF)
        + b"rest"
    )
    reader = _reader(data)
    assert skip_module_data(ModuleTypeHandler(reader), 0) is None
    assert reader.count == len(data) - 4


def test_unknown_opcode_raises():
    handler = ModuleTypeHandler(_reader(_length(6)))
    with pytest.raises(RdbError, match="unknown opcode"):
        handler.read_opcode()


def test_read_sint_wraps_to_signed():
    handler = ModuleTypeHandler(_reader(b"\x81" + struct.pack(">Q", (1 << 64) - 1)))
    assert handler.read_sint() == -1


def test_handler_reads_floats_and_raw_bytes():
    data = struct.pack("<f", 0.25) + struct.pack("<d", -3.5) + b"\x09xyz" + _length(5)
    handler = ModuleTypeHandler(_reader(data))
    assert handler.read_float32() == 0.25
    assert handler.read_double() == -3.5
    assert handler.read_byte() == 9
    assert handler.read_full(3) == b"xyz"
    assert handler.read_length() == (5, False)


def test_module_id_for_rejects_bad_names():
    with pytest.raises(ValueError):
        module_id_for("short", 1)
    with pytest.raises(ValueError):
        module_id_for("bad.type!", 1)
    with pytest.raises(ValueError):
        module_id_for(TEST_MODULE_TYPE, 1024)


def test_truncated_module_data_raises():
    data = _module_payload()[:-3]
    with pytest.raises(EOFError):
        read_module_type(_reader(data), {})