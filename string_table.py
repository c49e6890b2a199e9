# string_table.py
"""
Text lookups into the package's variable-length data area.

Text is big-endian UTF-16, two bytes per character, addressed by a
TextReference whose offset and length are byte counts relative to the start
of the string table. There is no implicit terminator; whatever the length
covers is decoded, including a trailing NUL if the package stored one.
"""

from dataclasses import dataclass

from byte_utils import BoundsError, slice_exact, unpack_u16


@dataclass(frozen=True)
class TextRef:
    offset: int
    length: int

    @property
    def char_count(self) -> int:
        return self.length // 2


def unpack_text_ref(b: bytes, offset: int) -> TextRef:
    """Read an (offset u16, length u16) pair at offset."""
    return TextRef(offset=unpack_u16(b, offset), length=unpack_u16(b, offset + 2))


def read_text(table: bytes, ref: TextRef) -> str:
    """
    Decode exactly ref.length bytes at ref.offset of table.

    An odd length leaves half a code unit at the end; it decodes to U+FFFD
    instead of being dropped. Raises BoundsError if the reference runs past
    the end of the table.
    """
    try:
        raw = slice_exact(table, ref.offset, ref.length, "text reference")
    except BoundsError:
        raise BoundsError(
            f"text reference (offset {ref.offset}, length {ref.length}) "
            f"exceeds string table of {len(table)} bytes"
        ) from None
    return raw.decode('utf-16-be', errors='replace')
