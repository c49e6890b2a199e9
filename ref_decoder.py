# ref_decoder.py
"""
Classifier for 32-bit tagged reference words.

The low bits of a reference select how the rest of the word is read:

    ..00  Integer       value = word >> 2 (sign preserved)
    ..01  Pointer       heap index = word >> 2 (never followed)
    ..10  Character     when (word & 0xfff0000f) == 0xa, code = (word >> 4) & 0xffff
    ..10  Special       any other ..10 word, value = word >> 2
    ..11  MagicPointer  table = high 16 bits, index = low 16 bits >> 2

Provides:
- decode_ref(word) -> TaggedRef
"""

from dataclasses import dataclass
from typing import Union

WORD_MASK = 0xFFFFFFFF
TAG_MASK = 0x00000003

TAG_INTEGER = 0x0
TAG_POINTER = 0x1
TAG_IMMEDIATE = 0x2
TAG_MAGIC_POINTER = 0x3

CHARACTER_MASK = 0xFFF0000F
CHARACTER_TAG = 0x0000000A


@dataclass(frozen=True)
class IntegerRef:
    value: int


@dataclass(frozen=True)
class PointerRef:
    index: int


@dataclass(frozen=True)
class CharacterRef:
    code: int


@dataclass(frozen=True)
class SpecialRef:
    value: int


@dataclass(frozen=True)
class MagicPointerRef:
    table: int
    index: int


TaggedRef = Union[IntegerRef, PointerRef, CharacterRef, SpecialRef, MagicPointerRef]


def decode_ref(word: int) -> TaggedRef:
    """
    Classify one unsigned 32-bit word.
    Raises ValueError if word is not in 0..0xFFFFFFFF.
    """
    if word < 0 or word > WORD_MASK:
        raise ValueError(f"Reference word {word:#x} is not a 32-bit value")

    tag = word & TAG_MASK
    if tag == TAG_INTEGER:
        signed = word - (1 << 32) if word & 0x80000000 else word
        return IntegerRef(signed >> 2)
    if tag == TAG_POINTER:
        return PointerRef(word >> 2)
    # characters are a subset of the ..10 immediates, so test them first
    if (word & CHARACTER_MASK) == CHARACTER_TAG:
        return CharacterRef((word >> 4) & 0xFFFF)
    if tag == TAG_IMMEDIATE:
        return SpecialRef(word >> 2)
    return MagicPointerRef(table=(word & 0xFFFF0000) >> 16, index=(word & 0x0000FFFF) >> 2)
