import pytest

from byte_utils import BoundsError
from string_table import TextRef, read_text, unpack_text_ref

TABLE = bytes([0x00, 0x41, 0x00, 0x42, 0x00, 0x43, 0x00, 0x44])


def test_length_is_in_bytes():
    assert read_text(TABLE, TextRef(0, 4)) == "AB"
    assert TextRef(0, 4).char_count == 2


def test_final_character_is_kept():
    assert read_text(TABLE, TextRef(0, 8)) == "ABCD"
    assert read_text(TABLE, TextRef(6, 2)) == "D"


def test_empty_reference():
    assert read_text(TABLE, TextRef(8, 0)) == ""


def test_odd_length_keeps_dangling_byte():
    assert read_text(TABLE, TextRef(0, 3)) == "A\ufffd"


def test_non_ascii():
    table = "Äpfel™".encode('utf-16-be')
    assert read_text(table, TextRef(0, len(table))) == "Äpfel™"


@pytest.mark.parametrize("ref", [TextRef(0, 10), TextRef(8, 2), TextRef(7, 2)])
def test_out_of_range(ref):
    with pytest.raises(BoundsError):
        read_text(TABLE, ref)


def test_unpack_text_ref():
    assert unpack_text_ref(b'\xff\x00\x12\x00\x34', 1) == TextRef(0x12, 0x34)
