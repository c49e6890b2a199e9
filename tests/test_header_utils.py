import datetime

import pytest

from byte_utils import (
    HEADER_SIZE, PackageFlag, PartKind,
    BoundsError, PackageFormatError, UnsupportedFormatError,
)
from header_utils import (
    SignatureKind, parse_directory, parse_package_header, parse_part_table, string_table,
)
from string_table import TextRef
from package_builder import build_package, frame_obj, header_bytes, part_entry


def test_header_fields():
    buf = header_bytes(flags=0x90000000, version=0x1234, copyright=(0, 10), name=(10, 6),
                       size=999, creation_date=86400 * 2 + 61, directory_size=HEADER_SIZE)
    h = parse_package_header(buf)
    assert h.signature_text == 'package0'
    assert h.signature_kind is SignatureKind.NO_RELOCATION
    assert h.flags == 0x90000000
    assert h.flag_names == ['AUTO_REMOVE', 'NO_COMPRESSION']
    assert h.version == 0x1234
    assert h.copyright == TextRef(0, 10)
    assert h.name == TextRef(10, 6)
    assert h.size == 999
    assert h.created == datetime.datetime(1904, 1, 6, 0, 1, 1)
    assert h.num_parts == 0


@pytest.mark.parametrize("sig,kind", [
    (b'package0', SignatureKind.NO_RELOCATION),
    (b'package1', SignatureKind.MAY_RELOCATE),
    (b'packageX', SignatureKind.UNKNOWN),
])
def test_signature_kind(sig, kind):
    assert parse_package_header(header_bytes(signature=sig)).signature_kind is kind


def test_non_ascii_signature():
    with pytest.raises(PackageFormatError):
        parse_package_header(header_bytes(signature=b'pack\xe9ge0'))


def test_short_header():
    with pytest.raises(BoundsError):
        parse_package_header(header_bytes()[:40])


def test_relocation_stops_after_header():
    # claims five parts but the buffer holds the header only
    buf = header_bytes(signature=b'package1', flags=PackageFlag.RELOCATION,
                       directory_size=10000, num_parts=5)
    with pytest.raises(UnsupportedFormatError) as exc:
        parse_directory(buf)
    assert exc.value.header.num_parts == 5
    assert exc.value.header.has_relocation


def test_derived_offsets():
    buf = build_package([{'data': frame_obj([])}], copyright='(c)', name='Hi')
    h = parse_directory(buf)
    assert h.string_table_start == HEADER_SIZE + 32
    assert h.data_start == h.directory_size == HEADER_SIZE + 32 + 10
    assert string_table(buf, h) == '(c)Hi'.encode('utf-16-be')


def test_part_table_past_buffer():
    buf = header_bytes(directory_size=HEADER_SIZE, num_parts=3)
    with pytest.raises(BoundsError):
        parse_directory(buf)


def test_directory_size_past_buffer():
    buf = header_bytes(directory_size=HEADER_SIZE + 100)
    with pytest.raises(BoundsError):
        parse_directory(buf)


def test_directory_size_inside_part_table():
    buf = header_bytes(directory_size=HEADER_SIZE, num_parts=1) + part_entry(0, 0)
    with pytest.raises(BoundsError):
        parse_directory(buf)


def test_part_descriptors():
    entries = (part_entry(0, 16, b'form', 0x00000091, (4, 8), size2=77)
               + part_entry(16, 32, b'raw ', 0x00000002)
               + part_entry(48, 8, b'book', 0x00000003 | 0x100 | 0x20 | 0x10000))
    buf = header_bytes(num_parts=3) + entries
    parts = parse_part_table(buf, 3)

    assert [p.index for p in parts] == [0, 1, 2]
    first = parts[0]
    assert (first.offset, first.size, first.size2) == (0, 16, 77)
    assert first.type_text == 'form'
    assert first.kind is PartKind.NOS
    assert first.flag_names == ['AUTO_LOAD', 'NOTIFY']
    assert first.info == TextRef(4, 8)

    assert parts[1].kind is PartKind.RAW
    assert parts[1].type_text == 'raw '

    # unnamed kind value and unknown bits survive in the raw flags
    assert parts[2].kind == 3
    assert parts[2].flag_names == ['AUTO_REMOVE', 'AUTO_COPY']
    assert parts[2].flags & 0x10000


def test_part_table_truncated():
    buf = header_bytes(num_parts=2) + part_entry(0, 0)
    with pytest.raises(BoundsError):
        parse_part_table(buf, 2)
