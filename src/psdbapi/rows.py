"""
Row decoding: one base64 blob per row plus the byte length of every column.

    {"lengths": ["1", "0", "5"], "values": "MWhlbGxv"}  ->  b"1", b"", b"hello"

Column values are memoryview slices of the row's decoded buffer. A zero
length decodes to an empty value; the encoding carries no separate NULL marker.
"""

import base64
import binascii
import re
from typing import Sequence, Tuple

from .exceptions import ProtocolError

_UNSIGNED_DECIMAL = re.compile(r"[0-9]+")

RowValues = Tuple[memoryview, ...]


def parse_length(raw) -> int:
    if not isinstance(raw, str) or not _UNSIGNED_DECIMAL.fullmatch(raw):
        raise ProtocolError(f"invalid column length: {raw!r}")
    return int(raw)


def decode_row(values: str, lengths: Sequence[str]) -> RowValues:
    """
    Split the decoded `values` blob into len(lengths) column values.
    Throw ProtocolError on bad base64, bad lengths, or when the lengths
    do not add up to the size of the blob.
    """
    if not isinstance(values, str):
        raise ProtocolError(f"row values must be a base64 string, got {type(values).__name__}")
    try:
        buf = memoryview(base64.b64decode(values, validate=True))
    except (binascii.Error, ValueError) as e:
        raise ProtocolError(f"invalid base64 row values: {e}") from e

    columns = []
    pos = 0
    for raw in lengths:
        n = parse_length(raw)
        if pos + n > len(buf):
            raise ProtocolError(
                f"column lengths overrun row data: need {pos + n} bytes, have {len(buf)}"
            )
        columns.append(buf[pos : pos + n])
        pos += n

    if pos != len(buf):
        raise ProtocolError(f"column lengths cover {pos} bytes but row data has {len(buf)}")
    return tuple(columns)
