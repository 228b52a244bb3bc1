import heapq
import math
from collections import Counter
from itertools import count

from binary_tree import BinaryTree
from bit_sequence import BitSequence
from errors import DecodeError, InvalidBitStringError, InvalidCodeTableError, UnknownSymbolError

EPSILON = 0.00001 # frequencies closer than this compare as equal


class HuffmanNodeData: # value stored at every Huffman tree node
    def __init__(self, symbol=None, frequency=None, code=None):
        self.symbol = symbol       # single character, None for internal nodes
        self.frequency = frequency # relative weight, None when rebuilt from a code table
        self.code = code           # BitSequence path from the root

    def __eq__(self, other):
        if not isinstance(other, HuffmanNodeData):
            return NotImplemented
        return (self.symbol, self.frequency, self.code) == (other.symbol, other.frequency, other.code)

    def __hash__(self):
        return hash((self.symbol, self.frequency, self.code))

    def __str__(self):
        return f"({self.symbol}, {self.frequency}, {self.code})"

    def __repr__(self):
        return f"HuffmanNodeData({self.symbol!r}, {self.frequency!r}, {self.code!r})"


class HuffmanTree(BinaryTree):
    """
    Binary tree of HuffmanNodeData, ordered by frequency.

    Ordering (compare_to, <, >) looks only at the root frequency and treats
    frequencies within EPSILON as equal. Equality (==) is the structural
    equality inherited from BinaryTree; same_symbol_and_frequency is the
    narrower check that ignores children.
    """

    def __init__(self, data=None, left=None, right=None):
        super().__init__(data, left, right)

    @classmethod
    def leaf(cls, symbol, frequency, code=None):
        return cls(HuffmanNodeData(symbol, frequency, code))

    @classmethod
    def merge(cls, frequency, left, right): # internal node, code assigned later
        return cls(HuffmanNodeData(None, frequency, None), left, right)

    @property
    def symbol(self):
        return self.get_value().symbol

    @symbol.setter
    def symbol(self, symbol):
        self.get_value().symbol = symbol

    @property
    def frequency(self):
        return self.get_value().frequency

    @frequency.setter
    def frequency(self, frequency):
        self.get_value().frequency = frequency

    @property
    def code(self):
        return self.get_value().code

    @code.setter
    def code(self, code):
        self.get_value().code = code

    def compare_to(self, other: "HuffmanTree") -> int:
        if abs(self.frequency - other.frequency) < EPSILON:
            return 0
        return 1 if self.frequency > other.frequency else -1

    def __lt__(self, other):
        return self.compare_to(other) < 0

    def __gt__(self, other):
        return self.compare_to(other) > 0

    def same_symbol_and_frequency(self, other) -> bool:
        if not isinstance(other, HuffmanTree):
            return False
        return self.symbol == other.symbol and self.frequency == other.frequency

    def leaves(self) -> list:
        return [node for node in self.preorder_subtrees() if node.is_leaf()]


class _QueueEntry: # priority-queue slot: frequency first, then tie-break rank
    __slots__ = ("tree", "rank")

    def __init__(self, tree, rank):
        self.tree = tree
        self.rank = rank

    def __lt__(self, other):
        order = self.tree.compare_to(other.tree)
        if order == 0:
            return self.rank < other.rank
        return order < 0


def frequency_table(text: str) -> dict: # symbol -> occurrences / len(text)
    if not text:
        return {}
    return {symbol: occurrences / len(text) for symbol, occurrences in Counter(text).items()}


def entropy(table: dict) -> float: # Shannon entropy in bits/symbol of a weight table
    total = sum(table.values())
    if total <= 0:
        return 0.0
    return -sum((w / total) * math.log2(w / total) for w in table.values() if w > 0)


def build_huffman_tree(table: dict, tie_break=None) -> HuffmanTree:
    """
    Greedy Huffman merge over a min-priority queue of singleton trees.

    The first tree popped becomes the left child. Trees whose frequencies are
    within EPSILON are ordered by tie_break(tree, sequence_number), which
    defaults to the sequence number itself (insertion order).
    """
    if not table:
        raise ValueError("cannot build a Huffman tree from an empty frequency table")
    sequence = count()

    def entry(tree):
        number = next(sequence)
        return _QueueEntry(tree, number if tie_break is None else tie_break(tree, number))

    priority_queue = []
    for symbol, frequency in table.items():
        if not isinstance(symbol, str) or len(symbol) != 1:
            raise ValueError(f"symbols must be single characters, got {symbol!r}")
        if frequency is None or frequency < 0:
            raise ValueError(f"frequency of {symbol!r} must be non-negative, got {frequency!r}")
        priority_queue.append(entry(HuffmanTree.leaf(symbol, float(frequency), BitSequence())))
    heapq.heapify(priority_queue)

    while len(priority_queue) > 1:
        left = heapq.heappop(priority_queue).tree
        right = heapq.heappop(priority_queue).tree
        merged = HuffmanTree.merge(left.frequency + right.frequency, left, right)
        heapq.heappush(priority_queue, entry(merged))

    return priority_queue[0].tree # root of the tree


def assign_codes(root: HuffmanTree) -> None: # code = path from root, 0 left / 1 right
    def assign(node, code):
        node.code = code
        left = node.get_left_child()
        if left is not None:
            assign(left, BitSequence(code).append(0))
        right = node.get_right_child()
        if right is not None:
            assign(right, BitSequence(code).append(1))

    assign(root, BitSequence())


def generate_huffman_codes(root: HuffmanTree) -> dict: # symbol -> BitSequence
    codes = {}

    def collect(node, current_code):
        if node.is_leaf():
            codes[node.symbol] = current_code
            return
        left = node.get_left_child()
        if left is not None:
            collect(left, BitSequence(current_code).append(0))
        right = node.get_right_child()
        if right is not None:
            collect(right, BitSequence(current_code).append(1))

    collect(root, BitSequence())
    return codes


def _inverse_code_map(code_table: dict) -> dict: # code string -> symbol, prefix-free or rejected
    if not code_table:
        raise InvalidCodeTableError("code table is empty")
    inverse = {}
    for symbol, code in code_table.items():
        if not isinstance(symbol, str) or len(symbol) != 1:
            raise InvalidCodeTableError(f"symbols must be single characters, got {symbol!r}")
        if code is None:
            raise InvalidCodeTableError(f"symbol {symbol!r} has no code")
        try:
            bits = str(BitSequence(code))
        except InvalidBitStringError as ex:
            raise InvalidCodeTableError(f"symbol {symbol!r} has a malformed code") from ex
        if bits in inverse:
            raise InvalidCodeTableError(f"symbols {inverse[bits]!r} and {symbol!r} share code {bits!r}")
        inverse[bits] = symbol

    ordered = sorted(inverse)
    for shorter, longer in zip(ordered, ordered[1:]):
        if longer.startswith(shorter): # sorted order puts a prefix right before an extension of it
            raise InvalidCodeTableError(f"code {shorter!r} is a prefix of code {longer!r}")
    return inverse


def build_tree_from_codes(code_table: dict) -> HuffmanTree:
    """
    Rebuilds a decode tree from a symbol -> code table without frequencies.

    Each prefix that is a code becomes a leaf; every other prefix that some
    code extends becomes an internal node with children for prefix + "0" and
    prefix + "1". Branches no code passes through are left absent.
    """
    inverse = _inverse_code_map(code_table)
    inner_prefixes = {code[:i] for code in inverse for i in range(len(code))}

    def build(prefix):
        symbol = inverse.get(prefix)
        if symbol is not None:
            return HuffmanTree.leaf(symbol, None, BitSequence(prefix))
        if prefix not in inner_prefixes:
            return None
        return HuffmanTree(HuffmanNodeData(None, None, BitSequence(prefix)), build(prefix + "0"), build(prefix + "1"))

    return build("")


def huffman_encode(text: str, code_table: dict) -> BitSequence:
    encoded = BitSequence()
    for symbol in text:
        code = code_table.get(symbol)
        if code is None:
            raise UnknownSymbolError(symbol)
        encoded.append(code)
    return encoded


def huffman_decode(bits: BitSequence, root: HuffmanTree) -> str:
    """
    Walks the tree bit by bit, emitting a symbol at every leaf.

    The loop keeps going while bits remain OR the current node is a leaf, so
    the symbol completed by the final bit is still emitted. A root that is
    itself a leaf has the empty code and decodes to the empty string.
    """
    if isinstance(bits, str):
        bits = BitSequence(bits)
    if root.is_leaf():
        return ""
    decoded = []
    node = root
    i = 0
    while i < bits.length() or node.is_leaf():
        if node.is_leaf():
            decoded.append(node.symbol)
            node = root
        else:
            child = node.get_left_child() if bits.int_at(i) == 0 else node.get_right_child()
            if child is None:
                raise DecodeError(f"no code matches the bits ending at position {i}")
            node = child
            i += 1
    if node is not root:
        raise DecodeError("bit sequence ends in the middle of a code")
    return "".join(decoded)


def average_code_length(code_table: dict, table: dict) -> float: # expected bits per symbol under table
    total = sum(table.values())
    if total <= 0:
        return 0.0
    return sum(weight * len(code_table[symbol]) for symbol, weight in table.items()) / total
