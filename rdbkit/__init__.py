"""Building blocks for reading and encoding Redis RDB data."""

__version__ = "0.1.0"
__all__ = [
    "bytefmt",
    "containers",
    "encoding",
    "listpack",
    "model",
    "module",
    "reader",
    "stream",
    "ziplist",
]