"""
Mutable sequence of binary digits used for Huffman codes and encoded payloads.

Bits are stored in a bitarray.bitarray. Every way of adding bits (a single
int, a bool, a '0'/'1' character, a string of digits or another BitSequence)
has the same effect: the digits are converted to 0/1 and appended in order.
Input that is not made of binary digits is rejected with InvalidBitStringError.
"""
from bitarray import bitarray
from bitarray.util import zeros

from errors import BitIndexError, InvalidBitStringError

BIT_CHARS = frozenset("01")


def _to_bit(value) -> int: # single bit from int, bool or '0'/'1' character
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        if value not in (0, 1):
            raise InvalidBitStringError(f"bit must be 0 or 1, got {value!r}")
        return value
    if isinstance(value, str) and len(value) == 1:
        if value not in BIT_CHARS:
            raise InvalidBitStringError(f"bit character must be '0' or '1', got {value!r}")
        return 1 if value == "1" else 0
    raise InvalidBitStringError(f"cannot interpret {value!r} as a bit")


def _to_bitarray(value) -> bitarray:
    if isinstance(value, BitSequence):
        return bitarray(value._bits)
    if isinstance(value, str) and len(value) != 1:
        if not set(value) <= BIT_CHARS:
            raise InvalidBitStringError(f"bit string may only contain '0' and '1', got {value!r}")
        return bitarray(value)
    bits = bitarray()
    bits.append(_to_bit(value))
    return bits


class BitSequence:

    def __init__(self, source=None):
        if source is None:
            self._bits = bitarray()
        elif isinstance(source, (BitSequence, str)):
            self._bits = _to_bitarray(source)
        else:
            raise InvalidBitStringError(f"cannot build a bit sequence from {type(source).__name__}")

    def length(self) -> int:
        return len(self._bits)

    def __len__(self):
        return len(self._bits)

    def append(self, value) -> "BitSequence":
        self._bits.extend(_to_bitarray(value))
        return self

    def _check_index(self, index: int) -> None:
        if index < 0 or index >= len(self._bits):
            raise BitIndexError(f"bit index {index} out of range for length {len(self._bits)}")

    def int_at(self, index: int) -> int:
        self._check_index(index)
        return self._bits[index]

    def bit_at(self, index: int) -> bool:
        return self.int_at(index) == 1

    def char_at(self, index: int) -> str:
        return "1" if self.int_at(index) else "0"

    def set_bit_at(self, index: int, value) -> None:
        """
        Overwrites the bit at index; past the end, pads with zero bits up to
        index and appends value there, so the length becomes index + 1.
        """
        if index < 0:
            raise BitIndexError(f"bit index {index} out of range")
        bit = _to_bit(value)
        if index < len(self._bits):
            self._bits[index] = bit
        else:
            self._bits.extend(zeros(index - len(self._bits)))
            self._bits.append(bit)

    def to_bitarray(self) -> bitarray:
        return bitarray(self._bits)

    def __iter__(self):
        return iter(self._bits.tolist())

    def __eq__(self, other):
        if not isinstance(other, BitSequence):
            return NotImplemented
        return self._bits == other._bits

    def __hash__(self):
        return hash(self._bits.to01())

    def __str__(self):
        return self._bits.to01()

    def __repr__(self):
        return f"BitSequence('{self._bits.to01()}')"
