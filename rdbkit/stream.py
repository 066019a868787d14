"""Reading stream values: listpack nodes, metadata and consumer groups."""

import struct

from rdbkit.listpack import read_entry_as_bytes, read_entry_as_int
from rdbkit.model import (
    StreamConsumer,
    StreamEntry,
    StreamGroup,
    StreamId,
    StreamMessage,
    StreamNAck,
    StreamObject,
)
from rdbkit.reader import BufferCursor, RdbError

STREAM_ITEM_FLAG_NONE = 0
STREAM_ITEM_FLAG_DELETED = 1 << 0
STREAM_ITEM_FLAG_SAME_FIELDS = 1 << 1

_UINT64_MASK = (1 << 64) - 1
_LISTPACK_HEADER_SIZE = 6


def _text(data):
    return bytes(data).decode("utf-8", "surrogateescape")


def _int_field(cursor, what):
    try:
        return read_entry_as_int(cursor)
    except RdbError as exc:
        raise RdbError(f"read {what} failed: {exc}") from exc


def _bytes_field(cursor, what):
    try:
        return read_entry_as_bytes(cursor)
    except RdbError as exc:
        raise RdbError(f"read {what} failed: {exc}") from exc


def _read_raw_id(reader):
    ms, seq = struct.unpack(">QQ", reader.read_exact(16))
    return StreamId(ms, seq)


def _read_uint64_le(reader):
    return struct.unpack("<Q", reader.read_exact(8))[0]


def read_stream_id(reader):
    """Read a stream id stored as two length encodings."""
    ms, _ = reader.read_length()
    seq, _ = reader.read_length()
    return StreamId(ms, seq)


def _read_entry_content(cursor, first_id):
    count = _int_field(cursor, "stream entry count")
    deleted = _int_field(cursor, "stream entry deleted count")
    master_field_num = _int_field(cursor, "stream field number")
    master_fields = [
        _text(_bytes_field(cursor, "field name of stream entry"))
        for _ in range(master_field_num)
    ]
    _bytes_field(cursor, "fields end flag")

    messages = []
    for _ in range(count + deleted):
        flag = _int_field(cursor, "stream item flag")
        ms_delta = _int_field(cursor, "stream item id ms")
        seq_delta = _int_field(cursor, "stream item id seq")
        msg_id = StreamId(
            (first_id.ms + ms_delta) & _UINT64_MASK,
            (first_id.sequence + seq_delta) & _UINT64_MASK,
        )
        same_fields = bool(flag & STREAM_ITEM_FLAG_SAME_FIELDS)
        if same_fields:
            field_num = master_field_num
        else:
            field_num = _int_field(cursor, "stream item field number")
        fields = {}
        for index in range(field_num):
            if same_fields:
                name = master_fields[index]
            else:
                name = _text(_bytes_field(cursor, "stream item field name"))
            fields[name] = _text(_bytes_field(cursor, "stream item field value"))
        _bytes_field(cursor, "fields end flag")
        messages.append(
            StreamMessage(
                id=msg_id,
                fields=fields,
                deleted=bool(flag & STREAM_ITEM_FLAG_DELETED),
            )
        )
    return StreamEntry(fields=master_fields, msgs=messages)


def read_stream_entries(reader):
    """Read the listpack nodes of a stream as a list of StreamEntry."""
    node_count, _ = reader.read_length()
    entries = []
    for _ in range(node_count):
        header = BufferCursor(reader.read_string())
        first_id = StreamId(
            struct.unpack(">Q", header.read_bytes(8))[0],
            struct.unpack(">Q", header.read_bytes(8))[0],
        )
        cursor = BufferCursor(reader.read_string(), _LISTPACK_HEADER_SIZE)
        entry = _read_entry_content(cursor, first_id)
        entry.first_msg_id = first_id
        entries.append(entry)
    return entries


def _read_consumer(reader, version):
    name = _text(reader.read_string())
    seen_time = _read_uint64_le(reader)
    active_time = _read_uint64_le(reader) if version >= 3 else seen_time
    pending_count, _ = reader.read_length()
    pending = [_read_raw_id(reader) for _ in range(pending_count)]
    return StreamConsumer(
        name=name, seen_time=seen_time, active_time=active_time, pending=pending
    )


def read_stream_groups(reader, version):
    """Read the consumer groups of a stream."""
    group_count, _ = reader.read_length()
    groups = []
    for _ in range(group_count):
        name = _text(reader.read_string())
        last_id = read_stream_id(reader)
        entries_read = reader.read_length()[0] if version >= 2 else 0

        pending_count, _ = reader.read_length()
        pending = []
        for _ in range(pending_count):
            nack_id = _read_raw_id(reader)
            delivery_time = _read_uint64_le(reader)
            delivery_count, _ = reader.read_length()
            pending.append(
                StreamNAck(
                    id=nack_id,
                    delivery_time=delivery_time,
                    delivery_count=delivery_count,
                )
            )

        consumer_count, _ = reader.read_length()
        consumers = [_read_consumer(reader, version) for _ in range(consumer_count)]
        groups.append(
            StreamGroup(
                name=name,
                last_id=last_id,
                pending=pending,
                consumers=consumers,
                entries_read=entries_read,
            )
        )
    return groups


def read_stream(reader, version):
    """Read a whole stream value of the given format version (1 to 3)."""
    entries = read_stream_entries(reader)
    length, _ = reader.read_length()
    stream = StreamObject(
        version=version,
        entries=entries,
        length=length,
        last_id=read_stream_id(reader),
    )
    if version >= 2:
        stream.first_id = read_stream_id(reader)
        stream.max_deleted_id = read_stream_id(reader)
        stream.added_entries_count, _ = reader.read_length()
    stream.groups = read_stream_groups(reader, version)
    return stream