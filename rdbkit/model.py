"""Objects produced when decoding an RDB file."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any, ClassVar

STRING_TYPE = "string"
LIST_TYPE = "list"
SET_TYPE = "set"
HASH_TYPE = "hash"
ZSET_TYPE = "zset"
STREAM_TYPE = "stream"
AUX_TYPE = "aux"
DB_SIZE_TYPE = "dbsize"

STRING_ENCODING = "string"
LIST_ENCODING = "list"
SET_ENCODING = "set"
ZSET_ENCODING = "zset"
HASH_ENCODING = "hash"
ZSET2_ENCODING = "zset2"
ZIPMAP_ENCODING = "zipmap"
ZIPLIST_ENCODING = "ziplist"
INTSET_ENCODING = "intset"
QUICKLIST_ENCODING = "quicklist"
LISTPACK_ENCODING = "listpack"
QUICKLIST2_ENCODING = "quicklist2"

QUICKLIST_NODE_CONTAINER_PLAIN = 1
QUICKLIST_NODE_CONTAINER_PACKED = 2


class TypeFlag(IntEnum):
    """Value type byte that precedes each key in an RDB file."""

    STRING = 0
    LIST = 1
    SET = 2
    ZSET = 3
    HASH = 4
    ZSET2 = 5
    MODULE = 6
    MODULE2 = 7
    HASH_ZIPMAP = 9
    LIST_ZIPLIST = 10
    SET_INTSET = 11
    ZSET_ZIPLIST = 12
    HASH_ZIPLIST = 13
    LIST_QUICKLIST = 14
    STREAM_LISTPACKS = 15
    HASH_LISTPACK = 16
    ZSET_LISTPACK = 17
    LIST_QUICKLIST2 = 18
    STREAM_LISTPACKS2 = 19
    SET_LISTPACK = 20
    STREAM_LISTPACKS3 = 21

    @property
    def encoding(self):
        """Name of the storage encoding this flag denotes, or an empty string."""
        return _ENCODINGS.get(self, "")


_ENCODINGS = {
    TypeFlag.STRING: STRING_ENCODING,
    TypeFlag.LIST: LIST_ENCODING,
    TypeFlag.SET: SET_ENCODING,
    TypeFlag.ZSET: ZSET_ENCODING,
    TypeFlag.HASH: HASH_ENCODING,
    TypeFlag.ZSET2: ZSET2_ENCODING,
    TypeFlag.HASH_ZIPMAP: ZIPMAP_ENCODING,
    TypeFlag.LIST_ZIPLIST: ZIPLIST_ENCODING,
    TypeFlag.SET_INTSET: INTSET_ENCODING,
    TypeFlag.ZSET_ZIPLIST: ZIPLIST_ENCODING,
    TypeFlag.HASH_ZIPLIST: ZIPLIST_ENCODING,
    TypeFlag.LIST_QUICKLIST: QUICKLIST_ENCODING,
    TypeFlag.STREAM_LISTPACKS: LISTPACK_ENCODING,
    TypeFlag.STREAM_LISTPACKS2: LISTPACK_ENCODING,
    TypeFlag.HASH_LISTPACK: LISTPACK_ENCODING,
    TypeFlag.ZSET_LISTPACK: LISTPACK_ENCODING,
    TypeFlag.LIST_QUICKLIST2: QUICKLIST2_ENCODING,
    TypeFlag.SET_LISTPACK: LISTPACK_ENCODING,
}


@dataclass
class ZiplistDetail:
    """Size of the serialized ziplist backing an object."""

    raw_string_size: int


@dataclass
class ListpackDetail:
    """Size of the serialized listpack backing an object."""

    raw_string_size: int


@dataclass
class IntsetDetail:
    """Size of the serialized intset backing a set."""

    raw_string_size: int


@dataclass
class QuicklistDetail:
    """Entries of each ziplist page in a quicklist."""

    ziplist_struct: list = field(default_factory=list)


@dataclass
class Quicklist2Detail:
    """Node containers and listpack entry sizes of a version 2 quicklist."""

    node_encodings: list = field(default_factory=list)
    listpack_entry_size: list = field(default_factory=list)


@dataclass(kw_only=True)
class RedisObject:
    """Fields shared by every object read from an RDB file."""

    TYPE: ClassVar[str] = ""

    key: str = ""
    db: int = 0
    expiration: datetime | None = None
    size: int = 0
    encoding: str = ""
    extra: Any = None

    @property
    def type(self):
        """Name of the data type of this object."""
        return self.TYPE

    def elem_count(self):
        """Number of elements held by the object."""
        return 0


@dataclass(kw_only=True)
class StringObject(RedisObject):
    TYPE: ClassVar[str] = STRING_TYPE

    value: bytes = b""


@dataclass(kw_only=True)
class ListObject(RedisObject):
    TYPE: ClassVar[str] = LIST_TYPE

    values: list = field(default_factory=list)

    def elem_count(self):
        return len(self.values)


@dataclass(kw_only=True)
class SetObject(RedisObject):
    TYPE: ClassVar[str] = SET_TYPE

    members: list = field(default_factory=list)

    def elem_count(self):
        return len(self.members)


@dataclass(kw_only=True)
class HashObject(RedisObject):
    TYPE: ClassVar[str] = HASH_TYPE

    mapping: dict = field(default_factory=dict)

    def elem_count(self):
        return len(self.mapping)


@dataclass
class ZSetEntry:
    """A member of a sorted set with its score."""

    member: str
    score: float


@dataclass(kw_only=True)
class ZSetObject(RedisObject):
    TYPE: ClassVar[str] = ZSET_TYPE

    entries: list = field(default_factory=list)

    def elem_count(self):
        return len(self.entries)


@dataclass(frozen=True, order=True)
class StreamId:
    """Identifier of a stream message: milliseconds and sequence number."""

    ms: int
    sequence: int

    def __str__(self):
        return f"{self.ms}-{self.sequence}"


@dataclass
class StreamMessage:
    id: StreamId
    fields: dict = field(default_factory=dict)
    deleted: bool = False


@dataclass
class StreamEntry:
    """A listpack node of a stream: master field names and its messages."""

    first_msg_id: StreamId | None = None
    fields: list = field(default_factory=list)
    msgs: list = field(default_factory=list)


@dataclass
class StreamNAck:
    """A message delivered to a consumer group but not yet acknowledged."""

    id: StreamId
    delivery_time: int
    delivery_count: int


@dataclass
class StreamConsumer:
    name: str
    seen_time: int
    active_time: int
    pending: list = field(default_factory=list)


@dataclass
class StreamGroup:
    name: str
    last_id: StreamId
    pending: list = field(default_factory=list)
    consumers: list = field(default_factory=list)
    entries_read: int = 0


@dataclass(kw_only=True)
class StreamObject(RedisObject):
    TYPE: ClassVar[str] = STREAM_TYPE

    version: int = 1
    entries: list = field(default_factory=list)
    length: int = 0
    last_id: StreamId | None = None
    first_id: StreamId | None = None
    max_deleted_id: StreamId | None = None
    added_entries_count: int = 0
    groups: list = field(default_factory=list)

    def elem_count(self):
        return self.length


@dataclass(kw_only=True)
class ModuleTypeObject(RedisObject):
    module_type: str = ""
    value: Any = None

    @property
    def type(self):
        return self.module_type


@dataclass(kw_only=True)
class AuxObject(RedisObject):
    """An auxiliary field of the file header."""

    TYPE: ClassVar[str] = AUX_TYPE

    value: str = ""


@dataclass(kw_only=True)
class DBSizeObject(RedisObject):
    """Resize hint: number of keys and of keys with a TTL in a database."""

    TYPE: ClassVar[str] = DB_SIZE_TYPE

    key_count: int = 0
    ttl_count: int = 0