import json

import newtonpkg
import reader
from byte_utils import PackageFlag
from package_builder import build_package, frame_obj, header_bytes, int_ref


def test_cli_prints_report(tmp_path, capsys):
    path = tmp_path / "demo.pkg"
    path.write_bytes(build_package([{'data': frame_obj([int_ref(5)])}], name='Demo'))

    assert newtonpkg.main([str(path)]) == 0
    out = capsys.readouterr().out
    assert out.startswith(f"{path} (")
    assert "         Name: Demo" in out
    assert "  Integer: 0x00000005 (5)" in out


def test_cli_json(tmp_path, capsys):
    path = tmp_path / "demo.pkg"
    path.write_bytes(build_package([{'data': frame_obj([])}]))

    assert newtonpkg.main([str(path), "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data['parts'][0]['objects'][0][1]['kind'] == 'FrameRecord'


def test_cli_relocation_is_success(tmp_path, capsys):
    path = tmp_path / "reloc.pkg"
    path.write_bytes(header_bytes(signature=b'package1', flags=PackageFlag.RELOCATION))

    assert newtonpkg.main([str(path)]) == 0
    assert "relocation data" in capsys.readouterr().out


def test_cli_usage_error(capsys):
    assert newtonpkg.main([]) == 2


def test_cli_missing_file(tmp_path, capsys):
    assert newtonpkg.main([str(tmp_path / "nope.pkg")]) == 1
    assert "can't open" in capsys.readouterr().err


def test_cli_unusable_directory(tmp_path, capsys):
    path = tmp_path / "short.pkg"
    path.write_bytes(header_bytes()[:20])

    assert newtonpkg.main([str(path)]) == 1
    assert capsys.readouterr().err.startswith("Error: cannot decode")


def test_cli_short_read(tmp_path, monkeypatch, capsys):
    path = tmp_path / "demo.pkg"
    path.write_bytes(build_package([{'data': frame_obj([])}]))

    def short_read(p):
        raise EOFError("Expected 100 bytes, got 40 bytes")

    monkeypatch.setattr(reader, 'read_file', short_read)
    assert newtonpkg.main([str(path)]) == 1
    assert capsys.readouterr().err.startswith(f"Error: I/O error reading {path}")
