# reader.py
from dataclasses import dataclass
from typing import List, Optional, Tuple

from byte_utils import (
    BoundsError, MalformedObjectError, UnsupportedFormatError,
    check_range, read_file,
)
from header_utils import (
    PackageHeader, PartDescriptor,
    parse_directory, parse_part_table, string_table,
)
from object_stream import ObjectRecord, iter_objects
from string_table import TextRef, read_text


@dataclass(frozen=True)
class DecodeProblem:
    kind: str
    message: str
    offset: Optional[int] = None

    @classmethod
    def from_error(cls, err: Exception) -> "DecodeProblem":
        return cls(kind=type(err).__name__, message=str(err), offset=getattr(err, 'offset', None))


@dataclass(frozen=True)
class PartReport:
    descriptor: PartDescriptor
    data_offset: int
    info: Optional[str]
    objects: Tuple[Tuple[int, ObjectRecord], ...]
    error: Optional[DecodeProblem] = None
    problems: Tuple[DecodeProblem, ...] = ()


@dataclass(frozen=True)
class PackageReport:
    file_size: int
    header: PackageHeader
    copyright: Optional[str] = None
    name: Optional[str] = None
    parts: Tuple[PartReport, ...] = ()
    relocation_unsupported: bool = False
    problems: Tuple[DecodeProblem, ...] = ()
    path: Optional[str] = None


def _lookup(table: bytes, ref: TextRef, problems: List[DecodeProblem]) -> Optional[str]:
    try:
        return read_text(table, ref)
    except BoundsError as e:
        problems.append(DecodeProblem.from_error(e))
        return None


def decode_part(buf: bytes, data_start: int, part: PartDescriptor, table: bytes) -> PartReport:
    """
    Decode one part's object stream.

    A malformed record or an out-of-range read ends this part only; the
    records decoded so far are kept and the error is recorded on the report.
    """
    problems: List[DecodeProblem] = []
    info = _lookup(table, part.info, problems)
    start = data_start + part.offset

    objects = []
    error = None
    try:
        check_range(len(buf), start, part.size, f"part {part.index}")
        for offset, record in iter_objects(buf, start, part.size):
            objects.append((offset, record))
    except (MalformedObjectError, BoundsError) as e:
        error = DecodeProblem.from_error(e)

    return PartReport(
        descriptor=part,
        data_offset=start,
        info=info,
        objects=tuple(objects),
        error=error,
        problems=tuple(problems),
    )


def decode_package(buf: bytes, path: Optional[str] = None) -> PackageReport:
    """
    Decode a whole package held in memory.

    Packages flagged as carrying relocation data come back with only the
    header and relocation_unsupported=True.
    Raises BoundsError / PackageFormatError when the directory itself is unusable.
    """
    try:
        header = parse_directory(buf)
    except UnsupportedFormatError as e:
        return PackageReport(
            file_size=len(buf),
            header=e.header,
            relocation_unsupported=True,
            path=path,
        )

    table = string_table(buf, header)
    problems: List[DecodeProblem] = []
    copyright_text = _lookup(table, header.copyright, problems)
    name_text = _lookup(table, header.name, problems)

    parts = parse_part_table(buf, header.num_parts)
    part_reports = tuple(decode_part(buf, header.data_start, p, table) for p in parts)

    return PackageReport(
        file_size=len(buf),
        header=header,
        copyright=copyright_text,
        name=name_text,
        parts=part_reports,
        problems=tuple(problems),
        path=path,
    )


def read_package(path: str) -> PackageReport:
    """
    Read a package file fully into memory and decode it.
    Raises OSError / EOFError / MemoryError from the read, PackageError from decoding.
    """
    return decode_package(read_file(path), path=path)
