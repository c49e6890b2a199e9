# report.py
"""
Human-readable and JSON renderings of a PackageReport.

The text layout is for people; every value in it is exact. The JSON form
carries the same values with records and references tagged by a "kind" key.
"""

import dataclasses
import enum
import json
from typing import Any, List

from header_utils import DATE_EPOCH, PackageHeader, PartDescriptor, SignatureKind
from object_stream import ArrayRecord, BinaryRecord, FrameRecord, ObjectRecord, class_name
from reader import DecodeProblem, PackageReport, PartReport
from ref_decoder import (
    CharacterRef, IntegerRef, MagicPointerRef, PointerRef, SpecialRef, TaggedRef,
)

_SIGNATURE_NOTES = {
    SignatureKind.NO_RELOCATION: "no relocation info, all Newton OS",
    SignatureKind.MAY_RELOCATE: "may contain relocation info, Newton OS 2.0+",
    SignatureKind.UNKNOWN: "unknown format",
}


def _hexdec(value: int) -> str:
    return f"0x{value:08x} ({value})"


def _flags(value: int, names: List[str]) -> str:
    return " ".join([f"0x{value:08x}"] + names)


def format_ref(ref: TaggedRef) -> str:
    if isinstance(ref, IntegerRef):
        return f"Integer: 0x{ref.value & 0xFFFFFFFF:08X} ({ref.value})"
    if isinstance(ref, PointerRef):
        return f"Pointer: 0x{ref.index:08X}"
    if isinstance(ref, CharacterRef):
        return f"Character: 0x{ref.code:04x}"
    if isinstance(ref, SpecialRef):
        return f"Special: 0x{ref.value:08X}"
    if isinstance(ref, MagicPointerRef):
        return f"MagicPtr: table {ref.table}, index {ref.index}"
    raise TypeError(f"Not a tagged reference: {ref!r}")


def format_class(code: int) -> str:
    name = class_name(code)
    return f"Class: 0x{code:08X}" + (f" ({name})" if name else "")


def format_object(record: ObjectRecord) -> List[str]:
    if isinstance(record, ArrayRecord):
        lines = [
            f"Type: Array (0x{record.size:X} ({record.size}) bytes, {record.alignment} byte aligned)",
            format_class(record.class_code),
        ]
        if record.first_ref is not None:
            lines.append("  " + format_ref(record.first_ref))
        return lines
    if isinstance(record, BinaryRecord):
        lines = [
            "Type: Binary object",
            f"Size: 0x{record.size:X} bytes ({record.size})",
            format_class(record.class_code),
        ]
        if record.symbol is not None:
            lines.append(f"Symbol: '{record.symbol}'")
        return lines
    if isinstance(record, FrameRecord):
        lines = [
            "Type: Frame",
            f"Size: 0x{record.size:X} bytes ({record.size})",
        ]
        lines.extend("  " + format_ref(r) for r in record.refs)
        return lines
    raise TypeError(f"Not an object record: {record!r}")


def format_problem(problem: DecodeProblem) -> str:
    return f"!! {problem.kind}: {problem.message}"


def _header_lines(report: PackageReport) -> List[str]:
    h: PackageHeader = report.header
    lines = [
        f"    Signature: '{h.signature_text}' ({_SIGNATURE_NOTES[h.signature_kind]})",
        f"        Flags: {_flags(h.flags, h.flag_names)}",
    ]
    if report.relocation_unsupported:
        return lines

    days = h.creation_date // 60 // 60 // 24
    lines += [
        f"      Version: {_hexdec(h.version)}",
        f"    Copyright: {report.copyright if report.copyright is not None else ''}",
        f"         Name: {report.name if report.name is not None else ''}",
        f"         Size: {_hexdec(h.size)}",
        f" creationDate: {_hexdec(h.creation_date)} "
        f"({DATE_EPOCH:%b %d, %Y} + {days} days = {h.created:%Y-%m-%d %H:%M:%S})",
        f"directorySize: {_hexdec(h.directory_size)}",
        f"     numParts: {_hexdec(h.num_parts)}",
    ]
    return lines


def _part_lines(part: PartReport) -> List[str]:
    d: PartDescriptor = part.descriptor
    kind = d.kind
    kind_name = kind.name if isinstance(kind, enum.Enum) else f"KIND_{kind}"
    lines = [
        "",
        f"Part {d.index}:",
        f"       Offset: {_hexdec(d.offset)}",
        f"         Size: {_hexdec(d.size)}",
        f"        Flags: {_flags(d.flags, [kind_name] + d.flag_names)}",
        f"         Type: '{d.type_text}'",
    ]
    if part.info:
        lines.append(f"         Info: {part.info}")
    lines.extend(format_problem(p) for p in part.problems)
    lines.append("")

    for offset, record in part.objects:
        lines.append(f"[file offset {offset:08X}]")
        lines.extend(format_object(record))
        lines.append("")
    if part.error is not None:
        lines.append(format_problem(part.error))
    return lines


def format_report(report: PackageReport) -> str:
    lines = []
    if report.path is not None:
        lines += [f"{report.path} ({report.file_size} bytes)", ""]
    lines += _header_lines(report)
    if report.relocation_unsupported:
        lines.append("can't parse packages with relocation data yet.")
        return "\n".join(lines) + "\n"

    lines.extend(format_problem(p) for p in report.problems)
    for part in report.parts:
        lines += _part_lines(part)
    return "\n".join(lines) + "\n"


def _jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        out = {'kind': type(value).__name__}
        for field in dataclasses.fields(value):
            out[field.name] = _jsonable(getattr(value, field.name))
        return out
    if isinstance(value, enum.Enum):
        return value.name
    if isinstance(value, bytes):
        return value.decode('latin-1')
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def report_to_json(report: PackageReport) -> str:
    data = _jsonable(report)
    h = report.header
    data['header']['signature_kind'] = h.signature_kind.name
    data['header']['flag_names'] = h.flag_names
    data['header']['created'] = h.created.isoformat()
    return json.dumps(data, indent=2, ensure_ascii=False)
