"""Redis module data types: type ids and their serialized values."""

import logging
from enum import IntEnum

from rdbkit.reader import RdbError

logger = logging.getLogger(__name__)

MODULE_TYPE_NAME_CHARSET = (
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"
)
MODULE_TYPE_NAME_LENGTH = 9
MAX_ENC_VERSION = 1023


class ModuleOpcode(IntEnum):
    """Tag preceding each value in module-serialized data."""

    EOF = 0
    SINT = 1
    UINT = 2
    FLOAT = 3
    DOUBLE = 4
    STRING = 5


class ModuleTypeHandler:
    """Read access to the RDB stream handed to module value parsers."""

    def __init__(self, reader):
        self._reader = reader

    def read_byte(self):
        return self._reader.read_byte()

    def read_full(self, size):
        return self._reader.read_exact(size)

    def read_opcode(self):
        code, _ = self._reader.read_length()
        if code > ModuleOpcode.STRING:
            raise RdbError("unknown opcode")
        return ModuleOpcode(code)

    def read_uint(self):
        value, _ = self._reader.read_length()
        return value

    def read_sint(self):
        value, _ = self._reader.read_length()
        value &= (1 << 64) - 1
        return value - (1 << 64) if value >= 1 << 63 else value

    def read_float32(self):
        return self._reader.read_float32()

    def read_double(self):
        return self._reader.read_float()

    def read_string(self):
        return self._reader.read_string()

    def read_length(self):
        return self._reader.read_length()


def module_type_name(module_id):
    """The nine-character type name packed into a module id."""
    bits = module_id >> 10
    chars = []
    for _ in range(MODULE_TYPE_NAME_LENGTH):
        chars.append(MODULE_TYPE_NAME_CHARSET[bits & 63])
        bits >>= 6
    return "".join(reversed(chars))


def module_enc_version(module_id):
    """The encoding version packed into a module id."""
    return module_id & MAX_ENC_VERSION


def module_id_for(name, enc_version):
    """Pack a type name and encoding version into a module id."""
    if len(name) != MODULE_TYPE_NAME_LENGTH:
        raise ValueError(
            f"module type name must be {MODULE_TYPE_NAME_LENGTH} characters: {name!r}"
        )
    if not 0 <= enc_version <= MAX_ENC_VERSION:
        raise ValueError(f"encoding version out of range: {enc_version}")
    module_id = 0
    for char in name:
        code = MODULE_TYPE_NAME_CHARSET.find(char)
        if code < 0:
            raise ValueError(f"unsupported char {char!r}")
        module_id = (module_id << 6) | code
    return (module_id << 10) | enc_version


def skip_module_data(handler, enc_version):
    """Consume module-serialized values up to the EOF opcode; returns None."""
    readers = {
        ModuleOpcode.SINT: handler.read_sint,
        ModuleOpcode.UINT: handler.read_uint,
        ModuleOpcode.FLOAT: handler.read_float32,
        ModuleOpcode.DOUBLE: handler.read_double,
        ModuleOpcode.STRING: handler.read_string,
    }
    opcode = handler.read_opcode()
    while opcode != ModuleOpcode.EOF:
        readers[opcode]()
        opcode = handler.read_opcode()
    return None


def read_module_type(reader, handlers):
    """Read a module value; returns ``(module_type, value)``.

    ``handlers`` maps type names to callables taking a ModuleTypeHandler and
    the encoding version. Types without a handler are skipped with value None.
    """
    module_id, _ = reader.read_length()
    module_type = module_type_name(module_id)
    handler = handlers.get(module_type)
    if handler is None:
        logger.warning("unknown module type: %s, will skip", module_type)
        handler = skip_module_data
    value = handler(ModuleTypeHandler(reader), module_enc_version(module_id))
    return module_type, value