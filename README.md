# rdbkit

rdbkit is a set of pure-Python building blocks for Redis RDB snapshot data.
It has no dependencies outside the standard library. It contains:

- readers for the RDB primitives: length encodings, strings (raw,
  integer-encoded and LZF-compressed) and numbers;
- readers for every value encoding: plain, ziplist, quicklist (v1 and v2),
  intset, zipmap, listpack, binary-score sorted sets, streams (v1–v3) and
  module types;
- encoders for lengths, strings, intsets, ziplists and doubles;
- dataclasses that describe decoded objects;
- formatting and parsing of human-readable byte sizes.

## What it does not do

rdbkit does not read or write a whole RDB file. It does not check the
`REDIS` header and version. It does not follow the top-level opcodes
(select-db, resize-db, expire times, aux fields, EOF). It does not write a
complete file with a CRC64 checksum. It has no command-line tool. To work
with a file, you combine the pieces below yourself.

## Installation

```
pip install rdbkit
```

## Reading primitives

`rdbkit.reader.RdbReader` wraps any binary stream. Its `count` attribute
holds the number of bytes consumed. Malformed data raises
`rdbkit.reader.RdbError`. Input that ends too early raises `EOFError`.

```python
import io
from rdbkit.encoding import encode_length, encode_string
from rdbkit.reader import RdbReader

data = encode_length(300) + encode_string("12", False) + encode_string("hello" * 10, True)
reader = RdbReader(io.BytesIO(data))
reader.read_length()   # (300, False)
reader.read_string()   # b"12"
reader.read_string()   # b"hellohello..." (stored LZF-compressed)
```

`RdbReader` also provides `read_byte`, `read_exact`, `read_int16`,
`read_int32`, `read_float` (binary double), `read_float32` and
`read_literal_float`. `rdbkit.reader.lzf_decompress(data, out_len)`
decompresses raw LZF data.

## Encoding primitives

`rdbkit.encoding` offers the following:

- `encode_length(value)`
- `encode_int_string(text)`: returns `None` unless the text is a canonical
  non-negative decimal that fits in 32 bits
- `encode_raw_string(value, compress)`
- `encode_string(value, compress)`: uses the integer encoding when it can.
  Otherwise it uses LZF for strings over 20 bytes, if `compress` is set and
  compression makes them smaller.
- `encode_intset(values)`
- `encode_float64(value)`
- `lzf_compress(data)`
- `random_string(length)`

## Ziplists and listpacks

```python
from rdbkit.ziplist import build_ziplist, read_ziplist

buf = build_ziplist(["a", "42", "-1", b"bytes"])
read_ziplist(buf)   # [b"a", b"42", b"-1", b"bytes"]
```

Integer entries come back as decimal bytes. `rdbkit.listpack.read_listpack(buf)`
returns the entries and the encoded size of each one.
`read_listpack_entry(cursor)` returns a `ListpackEntry` whose value is bytes
or an int. Both formats read through a `rdbkit.reader.BufferCursor`.

## Reading values

Each function in `rdbkit.containers` takes an `RdbReader` positioned at a
value. The value type has already been consumed.

```python
import io
from rdbkit.containers import read_intset, read_ziplist_hash
from rdbkit.encoding import encode_intset, encode_raw_string
from rdbkit.reader import RdbReader
from rdbkit.ziplist import build_ziplist

payload = encode_raw_string(build_ziplist(["field", "value"]), False)
read_ziplist_hash(RdbReader(io.BytesIO(payload)))
# ({"field": b"value"}, ZiplistDetail(raw_string_size=...))

payload = encode_raw_string(encode_intset(["3", "1", "2"]), False)
read_intset(RdbReader(io.BytesIO(payload)))
# ([b"1", b"2", b"3"], IntsetDetail(raw_string_size=...))
```

The module has these readers:

- lists: `read_list`, `read_quicklist`, `read_quicklist2`
- sets: `read_set`, `read_intset`, `read_listpack_set`
- hashes: `read_hash`, `read_zipmap_hash`, `read_ziplist_hash`,
  `read_listpack_hash`
- sorted sets: `read_zset(reader, binary_scores)`, `read_ziplist_zset`,
  `read_listpack_zset`

`rdbkit.stream.read_stream(reader, version)` reads a stream value, with
its entries, ids and consumer groups, into a `StreamObject`.

`rdbkit.model.TypeFlag` lists the value type bytes. Its `encoding` property
names the storage encoding of each one.

## Module types

A module id packs a nine-character type name and an encoding version:

```python
from rdbkit.module import module_id_for, module_type_name, module_enc_version

module_id = module_id_for("my-type--", 3)
module_type_name(module_id)    # "my-type--"
module_enc_version(module_id)  # 3
```

`read_module_type(reader, handlers)` reads a module id and then calls the
handler registered for that type name. The handler receives a
`ModuleTypeHandler` and the encoding version. The function returns
`(module_type, value)`. If a type has no handler, its data is skipped with
`skip_module_data` and the value is `None`.

```python
from rdbkit.module import ModuleOpcode

def read_my_type(handler, enc_version):
    values = []
    while handler.read_opcode() is not ModuleOpcode.EOF:
        values.append(handler.read_string())
    return values

module_type, value = read_module_type(reader, {"my-type--": read_my_type})
```

## Byte sizes

```python
from rdbkit.bytefmt import format_size, parse_size

format_size(123 * 1024)   # "123K"
parse_size("1.5M")        # 1572864
```

`parse_size` treats SI and binary prefixes alike as powers of 1024. It
raises `ValueError` for anything that is not a positive amount with a known
unit.