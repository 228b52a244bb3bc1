import itertools

import pytest

from binary_tree import BinaryTree
from bit_sequence import BitSequence
from errors import DecodeError, InvalidCodeTableError, UnknownSymbolError
from huffman import (EPSILON, HuffmanNodeData, HuffmanTree, assign_codes, average_code_length,
					 build_huffman_tree, build_tree_from_codes, entropy, frequency_table,
					 generate_huffman_codes, huffman_decode, huffman_encode)

# Leaf node data for Huffman coding of "roadrunner"
ROADRUNNER = {"r": 0.3, "o": 0.1, "a": 0.1, "d": 0.1, "u": 0.1, "n": 0.2, "e": 0.1}


def _leaf(symbol, frequency, code):
	return HuffmanTree(HuffmanNodeData(symbol, frequency, BitSequence(code)))


def _standard_tree():
	return HuffmanTree.merge(
		1.0,
		HuffmanTree.merge(0.4, HuffmanTree.merge(0.2, _leaf("e", 0.1, "000"), _leaf("a", 0.1, "001")), _leaf("n", 0.2, "01")),
		HuffmanTree.merge(
			0.6,
			HuffmanTree.merge(0.3, _leaf("o", 0.1, "100"), HuffmanTree.merge(0.2, _leaf("u", 0.1, "1010"), _leaf("d", 0.1, "1011"))),
			_leaf("r", 0.3, "11"),
		),
	)


def _is_prefix_free(codes):
	strings = [str(code) for code in codes.values()]
	for first, second in itertools.permutations(strings, 2):
		if second.startswith(first):
			return False
	return True


# Node data and tree accessors

def test_node_data_fields_are_independent():
	data = HuffmanNodeData()
	assert (data.symbol, data.frequency, data.code) == (None, None, None)
	data.symbol = "x"
	assert data.frequency is None
	assert str(HuffmanNodeData("a", 0.5, BitSequence("10"))) == "(a, 0.5, 10)"
	assert HuffmanNodeData("a", 0.5, BitSequence("10")) == HuffmanNodeData("a", 0.5, BitSequence("10"))
	assert HuffmanNodeData("a", 0.5, BitSequence("10")) != HuffmanNodeData("a", 0.5, BitSequence("11"))


def test_leaf_accessors():
	tree = HuffmanTree.leaf("A", 0.5, BitSequence("10"))
	assert tree.symbol == "A"
	assert tree.frequency == 0.5
	assert tree.code == BitSequence("10")
	assert tree.get_left_child() is None
	assert tree.get_right_child() is None
	tree.symbol = None
	tree.frequency = None
	tree.code = None
	assert tree.get_value() == HuffmanNodeData()


def test_internal_node_accessors():
	left = HuffmanTree.leaf("L", 0.2, BitSequence("100"))
	right = HuffmanTree.leaf("R", 0.3, BitSequence("101"))
	tree = HuffmanTree.merge(0.5, left, right)
	assert tree.symbol is None
	assert tree.code is None
	assert tree.frequency == 0.5
	assert tree.get_left_child() is left
	assert tree.get_right_child() is right


def test_ordering_by_frequency_with_epsilon():
	low = HuffmanTree.leaf("a", 0.1)
	high = HuffmanTree.leaf("b", 0.3)
	close = HuffmanTree.leaf("c", 0.1 + EPSILON / 10)
	assert low.compare_to(high) == -1
	assert high.compare_to(low) == 1
	assert low.compare_to(close) == 0
	assert low < high
	assert high > low
	assert not low < close and not close < low


def test_narrow_and_structural_equality_differ():
	first = HuffmanTree.merge(0.5, HuffmanTree.leaf("a", 0.25), HuffmanTree.leaf("b", 0.25))
	second = HuffmanTree.merge(0.5, HuffmanTree.leaf("c", 0.4), HuffmanTree.leaf("d", 0.1))
	assert first.same_symbol_and_frequency(second)
	assert first != second
	assert not first.structural_equals(second)
	assert not BinaryTree.structural_equals(first, second)


def test_narrow_equality_compares_symbols():
	assert HuffmanTree.leaf("a", 0.5).same_symbol_and_frequency(HuffmanTree.leaf("a", 0.5))
	assert not HuffmanTree.leaf("a", 0.5).same_symbol_and_frequency(HuffmanTree.leaf("b", 0.5))
	assert not HuffmanTree.leaf("a", 0.5).same_symbol_and_frequency(HuffmanTree.merge(0.5, None, None))
	assert not HuffmanTree.leaf("a", 0.5).same_symbol_and_frequency(BinaryTree("a"))


def test_structural_equality_of_standard_trees():
	assert _standard_tree() == _standard_tree()
	assert hash(_standard_tree()) == hash(_standard_tree())
	assert _standard_tree() != _leaf("r", 0.3, "11")
	assert _standard_tree() != BinaryTree(HuffmanNodeData(None, 1.0, None))


def test_huffman_tree_save_restore(tmp_path):
	path = str(tmp_path / "huffman.ser")
	assert _standard_tree().save(path)
	restored = HuffmanTree()
	assert restored.restore(path)
	assert restored == _standard_tree()


def test_restore_rejects_tree_of_another_class(tmp_path):
	path = str(tmp_path / "plain.ser")
	assert BinaryTree("x").save(path)
	tree = HuffmanTree()
	assert tree.restore(path) is False
	assert tree.is_empty()


# Frequency path

def test_frequency_table():
	table = frequency_table("roadrunner")
	assert table["r"] == pytest.approx(0.3)
	assert table["n"] == pytest.approx(0.2)
	assert sum(table.values()) == pytest.approx(1.0)
	assert frequency_table("") == {}


def test_build_roadrunner_tree():
	tree = build_huffman_tree(ROADRUNNER)
	assert tree.frequency == pytest.approx(1.0)
	frequencies = sorted([tree.get_left_child().frequency, tree.get_right_child().frequency])
	assert frequencies == [pytest.approx(0.4), pytest.approx(0.6)]
	assert tree.number_of_leaves() == len(ROADRUNNER)
	assert tree.number_of_nodes() == 2 * len(ROADRUNNER) - 1


def test_internal_nodes_hold_subtree_frequency():
	tree = build_huffman_tree(ROADRUNNER)
	for node in tree.preorder_subtrees():
		if node.is_leaf():
			assert node.symbol in ROADRUNNER
		else:
			assert node.symbol is None
			assert node.frequency == pytest.approx(sum(leaf.frequency for leaf in node.leaves()))


def test_assign_codes_matches_paths():
	tree = build_huffman_tree(ROADRUNNER)
	assign_codes(tree)
	assert tree.code == BitSequence()
	codes = generate_huffman_codes(tree)
	for leaf in tree.leaves():
		assert leaf.code == codes[leaf.symbol]


def test_codes_are_prefix_free_and_optimal_length():
	codes = generate_huffman_codes(build_huffman_tree(ROADRUNNER))
	assert set(codes) == set(ROADRUNNER)
	assert _is_prefix_free(codes)
	# Huffman lies within one bit of the entropy bound
	length = average_code_length(codes, ROADRUNNER)
	assert entropy(ROADRUNNER) <= length < entropy(ROADRUNNER) + 1
	assert length == pytest.approx(2.7)


def test_tie_break_is_injectable():
	table = {"a": 0.25, "b": 0.25, "c": 0.25, "d": 0.25}
	default = build_huffman_tree(table)
	reversed_order = build_huffman_tree(table, tie_break=lambda tree, number: -number)
	assert default.preorder_values() != reversed_order.preorder_values()
	assert default.get_left_child().get_left_child().symbol == "a"
	for tree in (default, reversed_order):
		assert all(len(code) == 2 for code in generate_huffman_codes(tree).values())


def test_single_symbol_tree():
	tree = build_huffman_tree({"z": 1.0})
	assert tree.is_leaf()
	assert generate_huffman_codes(tree) == {"z": BitSequence()}


def test_skewed_table_builds_a_chain():
	table = {chr(0x100 + i): float(2 ** i) for i in range(200)}
	tree = build_huffman_tree(table)
	assert tree.height() == 199
	assert tree.number_of_leaves() == 200
	codes = generate_huffman_codes(tree)
	assert len(codes[chr(0x100 + 199)]) == 1


def test_huffman_tree_children_must_be_huffman_trees():
	with pytest.raises(TypeError):
		HuffmanTree.merge(0.5, BinaryTree("a"), HuffmanTree.leaf("b", 0.25))
	tree = HuffmanTree.leaf("a", 0.5)
	with pytest.raises(TypeError):
		tree.set_left_child(BinaryTree(HuffmanNodeData("b", 0.25)))
	tree.set_left_child(BinaryTree())
	assert tree.is_leaf()
	assert isinstance(tree._left, HuffmanTree)


@pytest.mark.parametrize("table", [{}, {"ab": 0.5}, {1: 0.5}, {"a": -0.1}, {"a": None}])
def test_build_rejects_bad_tables(table):
	with pytest.raises(ValueError):
		build_huffman_tree(table)


# Code-table path

def test_rebuild_from_code_table():
	codes = {"r": "11", "o": "100", "a": "001", "d": "1011", "u": "1010", "n": "01", "e": "000"}
	tree = build_tree_from_codes(codes)
	assert sorted(leaf.symbol for leaf in tree.leaves()) == sorted(codes)
	for leaf in tree.leaves():
		assert str(leaf.code) == codes[leaf.symbol]
		assert leaf.frequency is None
	assert tree.preorder_values()[0] == HuffmanNodeData(None, None, BitSequence())
	assert generate_huffman_codes(tree) == {symbol: BitSequence(code) for symbol, code in codes.items()}


def test_rebuild_matches_frequency_tree_shape():
	built = build_huffman_tree(ROADRUNNER)
	rebuilt = build_tree_from_codes(generate_huffman_codes(built))
	assert rebuilt.height() == built.height()
	assert rebuilt.number_of_nodes() == built.number_of_nodes()
	assert [node.symbol for node in rebuilt.inorder_subtrees()] == [node.symbol for node in built.inorder_subtrees()]


def test_rebuild_incomplete_code_leaves_branch_absent():
	tree = build_tree_from_codes({"a": "0", "b": "10"})
	assert tree.get_left_child().symbol == "a"
	assert tree.get_right_child().get_right_child() is None
	assert huffman_decode(BitSequence("0100"), tree) == "aba"
	with pytest.raises(DecodeError):
		huffman_decode(BitSequence("11"), tree)


@pytest.mark.parametrize("codes", [
	{},
	{"a": "0", "b": "01"},
	{"a": "0", "b": "0"},
	{"a": "", "b": "1"},
	{"a": "0x"},
	{"a": None},
	{"ab": "0"},
])
def test_rebuild_rejects_malformed_tables(codes):
	with pytest.raises(InvalidCodeTableError):
		build_tree_from_codes(codes)


# Encode / decode

def test_encode_concatenates_codes():
	codes = generate_huffman_codes(_standard_tree())
	assert str(huffman_encode("ran", codes)) == "11" + "001" + "01"
	assert huffman_encode("", codes) == BitSequence()


def test_encode_unknown_symbol():
	codes = generate_huffman_codes(_standard_tree())
	with pytest.raises(UnknownSymbolError):
		huffman_encode("rabbit", codes)
	with pytest.raises(KeyError):
		huffman_encode("z", codes)


def test_decode_emits_final_symbol():
	tree = _standard_tree()
	assert huffman_decode(BitSequence("11"), tree) == "r"
	assert huffman_decode(BitSequence("1100101"), tree) == "ran"
	assert huffman_decode("1100101", tree) == "ran"
	assert huffman_decode(BitSequence(), tree) == ""


def test_decode_rejects_truncated_code():
	with pytest.raises(DecodeError):
		huffman_decode(BitSequence("110"), _standard_tree())


def test_roundtrip_all_roadrunner_substrings():
	tree = build_huffman_tree(ROADRUNNER)
	codes = generate_huffman_codes(tree)
	rebuilt = build_tree_from_codes(codes)
	word = "roadrunner"
	for start in range(len(word)):
		for end in range(start, len(word) + 1):
			text = word[start:end]
			encoded = huffman_encode(text, codes)
			assert huffman_decode(encoded, tree) == text
			assert huffman_decode(encoded, rebuilt) == text


def test_entropy():
	assert entropy({"a": 0.5, "b": 0.5}) == pytest.approx(1.0)
	assert entropy({"a": 2, "b": 2, "c": 2, "d": 2}) == pytest.approx(2.0)
	assert entropy({}) == 0.0
