"""Human-readable byte sizes using base-2 units."""

import math
import re

BYTE = 1
KILO = 1 << 10
MEGA = 1 << 20
GIGA = 1 << 30
TERA = 1 << 40
PETA = 1 << 50
EXA = 1 << 60

_MAX_UINT64 = (1 << 64) - 1

_INVALID_QUANTITY = (
    "byte quantity must be a positive integer with a unit of measurement "
    "like M, MB, MiB, G, GiB, or GB"
)

_FORMAT_UNITS = (
    ("E", EXA),
    ("P", PETA),
    ("T", TERA),
    ("G", GIGA),
    ("M", MEGA),
    ("K", KILO),
)

_PARSE_UNITS = {
    "E": EXA, "EB": EXA, "EIB": EXA,
    "P": PETA, "PB": PETA, "PIB": PETA,
    "T": TERA, "TB": TERA, "TIB": TERA,
    "G": GIGA, "GB": GIGA, "GIB": GIGA,
    "M": MEGA, "MB": MEGA, "MIB": MEGA,
    "K": KILO, "KB": KILO, "KIB": KILO,
    "B": BYTE,
}

_NUMBER = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)", re.ASCII)


def format_size(size):
    """Format a byte count as a short string such as ``10M`` or ``12.5K``.

    The unit giving the smallest value that is at least 1 is chosen.
    """
    if size < 0 or size > _MAX_UINT64:
        raise ValueError(f"byte count out of range: {size}")
    if size == 0:
        return "0"
    value = float(size)
    unit = "B"
    for name, multiple in _FORMAT_UNITS:
        if size >= multiple:
            value = value / multiple
            unit = name
            break
    return f"{value:.1f}".removesuffix(".0") + unit


def parse_size(text):
    """Parse a string such as ``123K`` or ``1.5GiB`` into a byte count.

    SI and binary prefixes both mean base-2 multiples.
    """
    text = text.strip().upper()
    index = next((i for i, char in enumerate(text) if char.isalpha()), -1)
    if index == -1:
        raise ValueError(_INVALID_QUANTITY)
    number, unit = text[:index], text[index:]
    if not _NUMBER.fullmatch(number):
        raise ValueError(_INVALID_QUANTITY)
    value = float(number)
    if math.isinf(value) or value <= 0:
        raise ValueError(_INVALID_QUANTITY)
    multiple = _PARSE_UNITS.get(unit)
    if multiple is None:
        raise ValueError(_INVALID_QUANTITY)
    result = int(value * multiple)
    if result > _MAX_UINT64:
        raise ValueError(_INVALID_QUANTITY)
    return result