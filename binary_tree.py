"""
Generic binary tree whose rooted nodes hold a non-None value.

A BinaryTree is either the empty tree (no value, no children) or a rooted
tree made of a value, a left subtree and a right subtree. Subtrees are always
BinaryTree objects: a missing child is stored as its own fresh empty tree and
reported as None by the child getters. Each rooted tree owns its children
exclusively, there are no parent links, and a tree can never contain itself.

Two trees are equal when they have the same shape and equal values at the
same positions. Trees can be saved to and restored from a pickle file tagged
with SERIAL_VERSION.
"""
import pickle
import sys

from errors import EmptyTreeError

SERIAL_FILENAME = "bt.ser" # default save/restore file
SERIAL_VERSION = 2016090422 # saved trees with any other version are rejected

_MALFORMED_PICKLE = (pickle.UnpicklingError, EOFError, AttributeError, ImportError,
                     IndexError, TypeError, ValueError)


class BinaryTree:

    def __init__(self, value=None, left=None, right=None):
        if value is None:
            if left is not None or right is not None:
                raise ValueError("a tree with children must have a root value")
            self._make_empty()
            return
        self._value = value
        self._left = self._adopt(left)
        self._right = self._adopt(right)
        if not self._left.is_empty() and self._left is self._right:
            raise ValueError("left and right child must be distinct trees")

    @classmethod
    def empty(cls):
        return cls.__new__(cls)._make_empty()

    def _make_empty(self):
        self._value = None
        self._left = None
        self._right = None
        return self

    def _adopt(self, child): # None and empty trees both become a fresh empty child
        if child is None:
            return type(self).empty()
        if not isinstance(child, BinaryTree):
            raise TypeError(f"child must be a BinaryTree, got {type(child).__name__}")
        if child.is_empty():
            return type(self).empty()
        if not isinstance(child, type(self)):
            raise TypeError(f"child of a {type(self).__name__} must be a {type(self).__name__}, got {type(child).__name__}")
        return child

    def _attach(self, child, current):
        # child must not already sit anywhere in this tree outside the slot it replaces
        adopted = self._adopt(child)
        if adopted is current or adopted.is_empty():
            return adopted
        kept = {id(node) for node in self.preorder_subtrees()} - {id(node) for node in current.preorder_subtrees()}
        if any(id(node) in kept for node in adopted.preorder_subtrees()):
            raise ValueError("child is already part of this tree")
        return adopted

    def _require_rooted(self) -> None:
        if self.is_empty():
            raise EmptyTreeError("operation not defined on the empty tree")

    def is_empty(self) -> bool:
        return self._value is None

    def number_of_nodes(self) -> int:
        if self.is_empty():
            return 0
        return 1 + self._left.number_of_nodes() + self._right.number_of_nodes()

    def is_leaf(self) -> bool:
        self._require_rooted()
        return self._left.is_empty() and self._right.is_empty()

    def get_value(self):
        self._require_rooted()
        return self._value

    def set_value(self, value) -> None:
        self._require_rooted()
        if value is None:
            raise ValueError("a rooted tree cannot hold None")
        self._value = value

    value = property(get_value, set_value)

    def get_left_child(self):
        self._require_rooted()
        return None if self._left.is_empty() else self._left

    def get_right_child(self):
        self._require_rooted()
        return None if self._right.is_empty() else self._right

    def set_left_child(self, child) -> None:
        self._require_rooted()
        self._left = self._attach(child, self._left)

    def set_right_child(self, child) -> None:
        self._require_rooted()
        self._right = self._attach(child, self._right)

    def number_of_leaves(self) -> int:
        self._require_rooted()
        if self.is_leaf():
            return 1
        return sum(child.number_of_leaves() for child in (self._left, self._right) if not child.is_empty())

    def height(self) -> int:
        """Edges on the longest downward path to a leaf; -1 for the empty tree."""
        if self.is_empty():
            return -1
        return 1 + max(self._left.height(), self._right.height())

    # Traversals

    def preorder_subtrees(self) -> list:
        if self.is_empty():
            return []
        return [self] + self._left.preorder_subtrees() + self._right.preorder_subtrees()

    def inorder_subtrees(self) -> list:
        if self.is_empty():
            return []
        return self._left.inorder_subtrees() + [self] + self._right.inorder_subtrees()

    def postorder_subtrees(self) -> list:
        if self.is_empty():
            return []
        return self._left.postorder_subtrees() + self._right.postorder_subtrees() + [self]

    def preorder_values(self) -> list:
        return BinaryTree.values(self.preorder_subtrees())

    def inorder_values(self) -> list:
        return BinaryTree.values(self.inorder_subtrees())

    def postorder_values(self) -> list:
        return BinaryTree.values(self.postorder_subtrees())

    @staticmethod
    def values(trees) -> list:
        """Root values of trees in order; None entries stay None, empty trees are dropped."""
        out = []
        for tree in trees:
            if tree is None:
                out.append(None)
            elif not tree.is_empty():
                out.append(tree.get_value())
        return out

    def __iter__(self):
        return iter(self.postorder_subtrees())

    # Equality

    def structural_equals(self, other) -> bool:
        if not isinstance(other, BinaryTree):
            return False
        if self.is_empty():
            return other.is_empty()
        if other.is_empty() or self.height() != other.height():
            return False
        if self._value != other._value:
            return False
        return self._left.structural_equals(other._left) and self._right.structural_equals(other._right)

    def __eq__(self, other):
        if other is None or type(other) is not type(self):
            return False
        return self.structural_equals(other)

    def __hash__(self):
        if self.is_empty():
            return hash(())
        return hash((self._value, hash(self._left), hash(self._right)))

    # Rendering

    def __str__(self):
        return self._indented(0)

    def _indented(self, level: int) -> str:
        indent = " " * (level * 2)
        if self.is_empty():
            return indent + "X_"
        rendering = f'{indent}["{self._value}": \n'
        rendering += self._left._indented(level + 1) if not self._left.is_empty() else indent + " _"
        rendering += ",\n"
        rendering += self._right._indented(level + 1) if not self._right.is_empty() else indent + " _"
        return rendering + "]"

    # Persistence

    def save(self, filename=None) -> bool:
        """
        Pickles this tree to filename (SERIAL_FILENAME by default), then reads
        it back. Returns True only if the re-read tree renders identically and
        is structurally equal to this one. Write failures are raised.
        """
        path = filename if filename is not None else SERIAL_FILENAME
        try:
            with open(path, "wb") as handle:
                pickle.dump({"version": SERIAL_VERSION, "tree": self}, handle, protocol=pickle.HIGHEST_PROTOCOL)
        except OSError as ex:
            print(f"Unsuccessful save. {ex}", file=sys.stderr)
            raise

        try:
            restored = self._load(path)
        except (OSError,) + _MALFORMED_PICKLE:
            return False
        if restored is None:
            return False
        return str(self) == str(restored) and self.structural_equals(restored)

    def restore(self, filename=None) -> bool:
        """
        Replaces this tree's value and children with the tree saved in
        filename. Returns False, leaving this tree unchanged, when the file is
        missing, malformed, from another version or holds another tree class.
        Other I/O errors are raised.
        """
        path = filename if filename is not None else SERIAL_FILENAME
        try:
            restored = self._load(path)
        except FileNotFoundError:
            return False
        except _MALFORMED_PICKLE:
            return False
        if restored is None:
            return False
        self._value = restored._value
        self._left = restored._left
        self._right = restored._right
        return True

    def _load(self, path):
        # None when the payload is not a tree of this class saved by this version
        with open(path, "rb") as handle:
            payload = pickle.load(handle)
        if not isinstance(payload, dict) or payload.get("version") != SERIAL_VERSION:
            return None
        tree = payload.get("tree")
        if type(tree) is not type(self):
            return None
        return tree
