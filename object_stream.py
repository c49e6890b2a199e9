# object_stream.py
"""
Decoder for the tagged object stream stored inside a part.

A part holds object records back to back. Each record starts with a
big-endian header word: the top 24 bits are the record size in bytes and the
low byte is the object format.

  Binary (0x40)  header, flags word, class at +8, data.
                 Symbols (class 0x55552) carry their name from +16.
                 Consumes size rounded up to a multiple of 4.
  Array  (0x41)  header, flags word (bit 0 set = 4-byte aligned), class at +8,
                 slots from +12. Consumes exactly size.
  Frame  (0x43)  8-byte header, then (size - 8) / 4 slot references.
                 Consumes exactly size.

Provides:
- decode_object(buf, offset, end) -> (ObjectRecord, consumed)
- iter_objects(buf, start, size) -> iterator of (offset, ObjectRecord)

References inside records are classified with ref_decoder.decode_ref and
never followed.
"""

from dataclasses import dataclass
from typing import Iterator, Optional, Tuple, Union

from byte_utils import (
    OBJECT_FORMAT_MASK, SYMBOL_CLASS, NIL_CLASS, ObjectFormat,
    BoundsError, MalformedObjectError,
    align4, check_range, slice_exact, unpack_u32,
)
from ref_decoder import TaggedRef, decode_ref

FRAME_HEADER_SIZE = 8
ARRAY_SLOTS_OFFSET = 12
CLASS_OFFSET = 8
SYMBOL_NAME_OFFSET = 16
# the symbol size covers the name plus its NUL terminator
SYMBOL_OVERHEAD = SYMBOL_NAME_OFFSET + 1

CLASS_NAMES = {
    NIL_CLASS: 'NIL',
    SYMBOL_CLASS: 'Symbol',
}


@dataclass(frozen=True)
class ArrayRecord:
    size: int
    class_code: int
    alignment: int
    first_ref: Optional[TaggedRef]


@dataclass(frozen=True)
class BinaryRecord:
    size: int
    class_code: int
    symbol: Optional[str] = None


@dataclass(frozen=True)
class FrameRecord:
    size: int
    refs: Tuple[TaggedRef, ...]


ObjectRecord = Union[ArrayRecord, BinaryRecord, FrameRecord]


def class_name(class_code: int) -> Optional[str]:
    return CLASS_NAMES.get(class_code)


def _require(buf: bytes, offset: int, length: int, end: int, what: str) -> None:
    """The record bytes must sit inside both the part region and the buffer."""
    if offset + length > end:
        raise BoundsError(
            f"{what}: {length} bytes at offset 0x{offset:08X} run past part end 0x{end:08X}"
        )
    check_range(len(buf), offset, length, what)


def _decode_binary(buf: bytes, offset: int, size: int, end: int) -> Tuple[BinaryRecord, int]:
    if size < CLASS_OFFSET + 4:
        raise MalformedObjectError(f"Binary object of {size} bytes has no class", offset)
    _require(buf, offset, size, end, "binary object")

    klass = unpack_u32(buf, offset + CLASS_OFFSET)
    symbol = None
    if klass == SYMBOL_CLASS:
        symbol = ''
        if size > SYMBOL_OVERHEAD:
            raw = slice_exact(buf, offset + SYMBOL_NAME_OFFSET, size - SYMBOL_OVERHEAD, "symbol name")
            symbol = raw.decode('latin-1')

    # padding is skipped, never read; a final record's padding may lie past the part end
    return BinaryRecord(size=size, class_code=klass, symbol=symbol), align4(size)


def _decode_array(buf: bytes, offset: int, size: int, end: int) -> Tuple[ArrayRecord, int]:
    if size < ARRAY_SLOTS_OFFSET:
        raise MalformedObjectError(f"Array object of {size} bytes has no class", offset)
    _require(buf, offset, size, end, "array object")

    flags = unpack_u32(buf, offset + 4)
    klass = unpack_u32(buf, offset + CLASS_OFFSET)
    first = None
    if size >= ARRAY_SLOTS_OFFSET + 4:
        first = decode_ref(unpack_u32(buf, offset + ARRAY_SLOTS_OFFSET))

    record = ArrayRecord(
        size=size,
        class_code=klass,
        alignment=4 if flags & 0x1 else 8,
        first_ref=first,
    )
    return record, size


def _decode_frame(buf: bytes, offset: int, size: int, end: int) -> Tuple[FrameRecord, int]:
    if size < FRAME_HEADER_SIZE or (size - FRAME_HEADER_SIZE) % 4 != 0:
        raise MalformedObjectError(f"Frame size {size} is not 8 plus a whole number of slots", offset)
    _require(buf, offset, size, end, "frame object")

    refs = tuple(
        decode_ref(unpack_u32(buf, pos))
        for pos in range(offset + FRAME_HEADER_SIZE, offset + size, 4)
    )
    return FrameRecord(size=size, refs=refs), size


_DECODERS = {
    ObjectFormat.BINARY: _decode_binary,
    ObjectFormat.ARRAY: _decode_array,
    ObjectFormat.FRAME: _decode_frame,
}


def decode_object(buf: bytes, offset: int, end: int) -> Tuple[ObjectRecord, int]:
    """
    Decode the record at offset, which must end at or before end.

    Returns (record, bytes consumed). Raises MalformedObjectError for an
    unknown format or a record that would not advance the cursor, and
    BoundsError when the record does not fit.
    """
    _require(buf, offset, 4, end, "object header")
    word = unpack_u32(buf, offset)
    size = (word & 0xFFFFFF00) >> 8
    fmt = word & OBJECT_FORMAT_MASK

    decoder = _DECODERS.get(fmt)
    if decoder is None:
        raise MalformedObjectError(f"Unknown object format 0x{fmt:02X}", offset)

    record, consumed = decoder(buf, offset, size, end)
    if consumed <= 0:
        raise MalformedObjectError(f"Object of size {size} does not advance the stream", offset)
    return record, consumed


def iter_objects(buf: bytes, start: int, size: int) -> Iterator[Tuple[int, ObjectRecord]]:
    """
    Yield (offset, record) for each record in buf[start:start+size].

    Offsets are absolute positions in buf. Records yielded before an error
    stay valid; the error is raised where decoding had to stop.
    """
    end = start + size
    check_range(len(buf), start, size, "part data")

    pos = start
    while pos < end:
        record, consumed = decode_object(buf, pos, end)
        yield pos, record
        pos += consumed
