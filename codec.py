"""
Huffman codec: a decode tree plus the symbol -> code table derived from it.

A codec is built either from frequencies (a seed text or an explicit
symbol -> frequency table), running the Huffman merge and assigning codes,
or from a symbol -> code table handed over by someone else, in which case the
decode tree is rebuilt from the codes alone and carries no frequencies.
"""
from bit_sequence import BitSequence
from huffman import (HuffmanTree, assign_codes, average_code_length, build_huffman_tree,
                     build_tree_from_codes, frequency_table, generate_huffman_codes,
                     huffman_decode, huffman_encode)


class HuffmanCodec:

    def __init__(self, seed: str, tie_break=None):
        if not isinstance(seed, str):
            raise TypeError(f"seed must be text, got {type(seed).__name__}")
        self._build(frequency_table(seed), tie_break)

    @classmethod
    def from_frequencies(cls, table: dict, tie_break=None) -> "HuffmanCodec":
        codec = cls.__new__(cls)
        codec._build(dict(table), tie_break)
        return codec

    @classmethod
    def from_code_table(cls, code_table: dict) -> "HuffmanCodec":
        codec = cls.__new__(cls)
        codec._tree = build_tree_from_codes(code_table)
        codec._codes = {symbol: BitSequence(code) for symbol, code in code_table.items()}
        codec._frequencies = None
        return codec

    @classmethod
    def restore(cls, filename=None):
        """Codec for a tree saved by save(); None if the file cannot be restored."""
        tree = HuffmanTree()
        if not tree.restore(filename):
            return None
        codec = cls.__new__(cls)
        codec._tree = tree
        codec._codes = generate_huffman_codes(tree)
        leaves = tree.leaves()
        if all(leaf.frequency is not None for leaf in leaves):
            codec._frequencies = {leaf.symbol: leaf.frequency for leaf in leaves}
        else:
            codec._frequencies = None
        return codec

    def _build(self, table, tie_break):
        self._tree = build_huffman_tree(table, tie_break)
        assign_codes(self._tree)
        self._codes = generate_huffman_codes(self._tree)
        self._frequencies = {symbol: float(frequency) for symbol, frequency in table.items()}

    @property
    def tree(self) -> HuffmanTree:
        return self._tree

    def symbols(self) -> list:
        return sorted(self._codes)

    def code_table(self) -> dict: # copy, callers may mutate it freely
        return {symbol: BitSequence(code) for symbol, code in self._codes.items()}

    def frequencies(self):
        return None if self._frequencies is None else dict(self._frequencies)

    def encode(self, text: str) -> BitSequence:
        return huffman_encode(text, self._codes)

    def decode(self, bits) -> str:
        return huffman_decode(bits, self._tree)

    def average_code_length(self, table=None) -> float:
        weights = table if table is not None else self._frequencies
        if weights is None:
            raise ValueError("codec built from a code table has no frequencies; pass a table")
        return average_code_length(self._codes, weights)

    def save(self, filename=None) -> bool:
        return self._tree.save(filename)
