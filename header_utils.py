# header_utils.py
"""
Package directory & part table parser.

Functions:
- parse_package_header(buf) -> PackageHeader
- parse_directory(buf) -> PackageHeader   (header + relocation check + layout checks)
- parse_part_table(buf, num_parts, offset) -> tuple of PartDescriptor

Fixed header layout (52 bytes, big-endian):

  0  signature[8]      8  reserved1        12 flags          16 version
  20 copyright ref     24 name ref         28 size           32 creationDate
  36 reserved2         40 reserved3        44 directorySize  48 numParts

Each part entry (32 bytes) follows immediately:

  0  offset   4  size   8  size2   12 type   16 reserved1   20 flags
  24 info ref           28 reserved2
"""

import datetime
import enum
from dataclasses import dataclass
from typing import List, Tuple

from byte_utils import (
    HEADER_SIZE, PART_ENTRY_SIZE, SIGNATURE_LEN, PART_KIND_MASK,
    PackageFlag, PartFlag, PartKind,
    BoundsError, PackageFormatError, UnsupportedFormatError,
    check_range, slice_exact, unpack_u32,
)
from string_table import TextRef, unpack_text_ref

# creationDate counts seconds from this moment
DATE_EPOCH = datetime.datetime(1904, 1, 4)


class SignatureKind(enum.Enum):
    NO_RELOCATION = '0'   # older format
    MAY_RELOCATE = '1'    # newer format, may carry relocation data
    UNKNOWN = '?'


@dataclass(frozen=True)
class PackageHeader:
    signature: bytes
    reserved1: int
    flags: int
    version: int
    copyright: TextRef
    name: TextRef
    size: int
    creation_date: int
    reserved2: int
    reserved3: int
    directory_size: int
    num_parts: int

    @property
    def signature_text(self) -> str:
        return self.signature.decode('ascii')

    @property
    def signature_kind(self) -> SignatureKind:
        last = chr(self.signature[-1])
        if last == '0':
            return SignatureKind.NO_RELOCATION
        if last == '1':
            return SignatureKind.MAY_RELOCATE
        return SignatureKind.UNKNOWN

    @property
    def has_relocation(self) -> bool:
        return bool(self.flags & PackageFlag.RELOCATION)

    @property
    def flag_names(self) -> List[str]:
        return [f.name for f in PackageFlag if self.flags & f]

    @property
    def created(self) -> datetime.datetime:
        return DATE_EPOCH + datetime.timedelta(seconds=self.creation_date)

    @property
    def string_table_start(self) -> int:
        return HEADER_SIZE + PART_ENTRY_SIZE * self.num_parts

    @property
    def data_start(self) -> int:
        return self.directory_size


@dataclass(frozen=True)
class PartDescriptor:
    index: int
    offset: int
    size: int
    size2: int        # duplicate of size, kept as found
    type_code: int
    reserved1: int
    flags: int
    info: TextRef
    reserved2: int

    @property
    def type_text(self) -> str:
        return self.type_code.to_bytes(4, 'big').decode('latin-1')

    @property
    def kind(self):
        """PartKind, or the raw two-bit value when it has no name."""
        value = self.flags & PART_KIND_MASK
        try:
            return PartKind(value)
        except ValueError:
            return value

    @property
    def flag_names(self) -> List[str]:
        return [f.name for f in PartFlag if self.flags & f]


def parse_package_header(buf: bytes) -> PackageHeader:
    """
    Parse the fixed 52-byte header at the start of buf.
    Raises BoundsError if buf is too short, PackageFormatError if the signature is not ASCII.
    """
    if len(buf) < HEADER_SIZE:
        raise BoundsError(f"Package too short for header: need {HEADER_SIZE} bytes, got {len(buf)}")

    signature = slice_exact(buf, 0, SIGNATURE_LEN, "signature")
    if any(c > 0x7F for c in signature):
        raise PackageFormatError(f"Signature {signature!r} is not ASCII")

    return PackageHeader(
        signature=signature,
        reserved1=unpack_u32(buf, 8),
        flags=unpack_u32(buf, 12),
        version=unpack_u32(buf, 16),
        copyright=unpack_text_ref(buf, 20),
        name=unpack_text_ref(buf, 24),
        size=unpack_u32(buf, 28),
        creation_date=unpack_u32(buf, 32),
        reserved2=unpack_u32(buf, 36),
        reserved3=unpack_u32(buf, 40),
        directory_size=unpack_u32(buf, 44),
        num_parts=unpack_u32(buf, 48),
    )


def parse_directory(buf: bytes) -> PackageHeader:
    """
    Parse the header and check it against the buffer.

    Raises UnsupportedFormatError (with .header set) when the relocation flag
    is present; nothing past the fixed header is read in that case.
    Raises BoundsError when the part table or string table would not fit.
    """
    header = parse_package_header(buf)
    if header.has_relocation:
        raise UnsupportedFormatError("Packages with relocation data are not supported", header)

    table_end = header.string_table_start
    if table_end > len(buf):
        raise BoundsError(
            f"Part table for {header.num_parts} parts ends at 0x{table_end:X}, "
            f"past end of {len(buf)}-byte package"
        )
    if header.directory_size > len(buf):
        raise BoundsError(
            f"Directory size 0x{header.directory_size:X} exceeds package size {len(buf)}"
        )
    if header.directory_size < table_end:
        raise BoundsError(
            f"Directory size 0x{header.directory_size:X} is smaller than the part table end 0x{table_end:X}"
        )
    return header


def string_table(buf: bytes, header: PackageHeader) -> bytes:
    """The variable-length data area between the part table and the part data."""
    start = header.string_table_start
    return slice_exact(buf, start, header.directory_size - start, "string table")


def parse_part_table(buf: bytes, num_parts: int, offset: int = HEADER_SIZE) -> Tuple[PartDescriptor, ...]:
    """
    Decode num_parts 32-byte entries starting at offset, in file order.
    """
    check_range(len(buf), offset, PART_ENTRY_SIZE * num_parts, "part table")

    parts = []
    for i in range(num_parts):
        base = offset + i * PART_ENTRY_SIZE
        parts.append(PartDescriptor(
            index=i,
            offset=unpack_u32(buf, base),
            size=unpack_u32(buf, base + 4),
            size2=unpack_u32(buf, base + 8),
            type_code=unpack_u32(buf, base + 12),
            reserved1=unpack_u32(buf, base + 16),
            flags=unpack_u32(buf, base + 20),
            info=unpack_text_ref(buf, base + 24),
            reserved2=unpack_u32(buf, base + 28),
        ))
    return tuple(parts)
