# byte_utils.py
"""
Binary unpacking helpers for the Newton package format.

Endianness: all multi-byte values are **big-endian** (struct format prefix '>').

This module centralizes:
- format constants (header sizes, package/part flags, object formats, classes)
- the error types raised while decoding
- bounds-checked unpack helpers that read from an immutable buffer at an offset
- safe file read helpers (read_exact, read_file)
"""

import enum
import os
import struct
from typing import BinaryIO

# ---- Format constants ----
SIGNATURE_LEN = 8
HEADER_SIZE = 52          # fixed package directory header
PART_ENTRY_SIZE = 32      # one part table entry

# Package flags
class PackageFlag(enum.IntFlag):
    AUTO_REMOVE = 0x80000000
    COPY_PROTECT = 0x40000000
    NO_COMPRESSION = 0x10000000
    RELOCATION = 0x04000000
    USE_FASTER_COMPRESSION = 0x02000000

# Part kind lives in the low two bits of the part flags
PART_KIND_MASK = 0x00000003

class PartKind(enum.IntEnum):
    PROTOCOL = 0
    NOS = 1
    RAW = 2

class PartFlag(enum.IntFlag):
    AUTO_LOAD = 0x00000010
    AUTO_REMOVE = 0x00000020
    NOTIFY = 0x00000080
    AUTO_COPY = 0x00000100

# Object formats (low byte of an object header word)
OBJECT_FORMAT_MASK = 0x000000FF

class ObjectFormat(enum.IntEnum):
    BINARY = 0x40
    ARRAY = 0x41
    FRAME = 0x43

# Classes
NIL_CLASS = 0x00000002
SYMBOL_CLASS = 0x00055552


# ---- Errors ----
class PackageError(ValueError):
    """Base class for problems found in the package bytes."""


class PackageFormatError(PackageError):
    """The fixed header is not a package header."""


class BoundsError(PackageError):
    """An offset/length pair points outside the buffer or table."""


class MalformedObjectError(PackageError):
    """An object record cannot be decoded; the part's stream stops here."""

    def __init__(self, message: str, offset: int):
        super().__init__(f"{message} at offset 0x{offset:08X}")
        self.offset = offset


class UnsupportedFormatError(PackageError):
    """
    The package carries relocation data, which is not decoded.
    The parsed header travels with the error so callers can still report it.
    """

    def __init__(self, message: str, header=None):
        super().__init__(message)
        self.header = header


# ---- Bounds-checked struct helpers (big-endian) ----
def check_range(buf_len: int, offset: int, length: int, what: str = "read") -> None:
    """
    Raise BoundsError unless [offset, offset+length) lies inside a buffer of buf_len bytes.
    """
    if offset < 0 or length < 0 or offset + length > buf_len:
        raise BoundsError(
            f"{what}: {length} bytes at offset 0x{offset:X} exceeds buffer of {buf_len} bytes"
        )

def unpack_u16(b: bytes, offset: int = 0) -> int:
    check_range(len(b), offset, 2, "u16")
    return struct.unpack_from('>H', b, offset)[0]

def unpack_u32(b: bytes, offset: int = 0) -> int:
    check_range(len(b), offset, 4, "u32")
    return struct.unpack_from('>I', b, offset)[0]

def slice_exact(b: bytes, offset: int, length: int, what: str = "slice") -> bytes:
    """
    Return exactly `length` bytes of b starting at offset, or raise BoundsError.
    """
    check_range(len(b), offset, length, what)
    return b[offset:offset + length]

def align4(n: int) -> int:
    return (n + 3) & ~3

# ---- Convenience / IO helpers ----
def read_exact(f: BinaryIO, n: int) -> bytes:
    """
    Read exactly n bytes from file-like object f.
    Raises EOFError if fewer than n bytes available.
    """
    data = f.read(n)
    if len(data) != n:
        raise EOFError(f"Expected {n} bytes, got {len(data)} bytes")
    return data

def read_file(path: str) -> bytes:
    """
    Read a whole package into memory.
    OSError on open failure, EOFError on a short read.
    """
    with open(path, 'rb') as f:
        f.seek(0, os.SEEK_END)
        size = f.tell()
        f.seek(0)
        return read_exact(f, size)
