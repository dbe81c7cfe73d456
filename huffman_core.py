# filename: huffman_core.py

import heapq
import itertools
import logging
from collections import Counter
from types import MappingProxyType

from bitarray import bitarray, frozenbitarray
from bitarray.util import ba2int, int2ba

from huffman_errors import (
    CorruptStreamError,
    EmptyAlphabetError,
    InvalidBitStringError,
    MalformedTreeError,
    TruncatedCodeError,
    UnknownSymbolError,
)

logger = logging.getLogger(__name__)

SYMBOL_BITS = 8
ALPHABET_SIZE = 1 << SYMBOL_BITS

ZERO = frozenbitarray("0")
ONE = frozenbitarray("1")


def as_bytes(data):
    """Normalize the accepted input types to ``bytes``; text is taken as UTF-8."""
    if isinstance(data, str):
        return data.encode("utf-8")
    if isinstance(data, int):
        raise TypeError("expected a byte buffer, got int")
    return bytes(data)


def to_bits(value):
    """Return ``value`` as a bitarray.

    Packed ``bitarray`` instances are used as they are; strings must consist of
    ``'0'`` and ``'1'`` characters only.
    """
    if isinstance(value, bitarray):
        return value
    if isinstance(value, str):
        stray = set(value) - {"0", "1"}
        if stray:
            raise InvalidBitStringError(f"not a bit string, unexpected {''.join(sorted(stray))!r}")
        return bitarray(value)
    raise TypeError(f"expected bitarray or str, got {type(value).__name__}")


def symbol_label(symbol):
    if 0x20 <= symbol < 0x7F:
        return chr(symbol)
    return f"\\x{symbol:02x}"


class HuffmanNode:
    def __init__(self, symbol, freq, left=None, right=None, seq=None):
        self.symbol = symbol
        self.freq = freq
        self.left = left
        self.right = right
        # creation order of merged nodes, None for leaves
        self.seq = seq

    @classmethod
    def leaf(cls, symbol, freq):
        return cls(symbol, freq)

    @classmethod
    def merge(cls, left, right, seq):
        return cls(None, left.freq + right.freq, left, right, seq)

    @property
    def is_leaf(self):
        return self.symbol is not None

    def sort_key(self):
        # equal weights: merged nodes first (newest first), then leaves by byte value
        if self.is_leaf:
            return (self.freq, 1, self.symbol)
        return (self.freq, 0, -self.seq)

    def __lt__(self, other):
        return self.sort_key() < other.sort_key()

    def __repr__(self):
        if self.is_leaf:
            return f"HuffmanNode(symbol={self.symbol!r}, freq={self.freq})"
        return f"HuffmanNode(freq={self.freq}, seq={self.seq})"


def iter_leaves(root):
    """Yield the leaves of the tree from left to right."""
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_leaf:
            yield node
            continue
        if node.left is None or node.right is None:
            raise MalformedTreeError(f"internal node {node!r} does not have two children")
        stack.append(node.right)
        stack.append(node.left)


class HuffmanLogic:
    def count_frequencies(self, data):
        return Counter(as_bytes(data))

    def build_tree(self, freqs):
        """Build the Huffman tree for a symbol -> count mapping and return its root.

        The two lightest nodes are merged first, the first one popped becoming the
        left child. Ties are broken by a fixed total order: merged nodes before
        leaves, newer merged nodes before older ones, leaves by ascending byte
        value. The resulting tree is fully determined by the counts.
        """
        priority_queue = []
        for symbol, freq in freqs.items():
            if not 0 <= symbol < ALPHABET_SIZE:
                raise ValueError(f"symbol {symbol!r} is not a byte value")
            if freq < 0:
                raise ValueError(f"negative count {freq} for symbol {symbol}")
            if freq:
                priority_queue.append(HuffmanNode.leaf(symbol, freq))
        if not priority_queue:
            raise EmptyAlphabetError()
        alphabet_size = len(priority_queue)
        heapq.heapify(priority_queue)

        seq = itertools.count(1)
        while len(priority_queue) > 1:
            left = heapq.heappop(priority_queue)
            right = heapq.heappop(priority_queue)
            heapq.heappush(priority_queue, HuffmanNode.merge(left, right, next(seq)))

        root = priority_queue[0]
        logger.debug("built Huffman tree over %d symbols, total weight %d", alphabet_size, root.freq)
        return root

    def generate_codes(self, root):
        """Map every leaf symbol to its root-to-leaf path (left = 0, right = 1).

        A tree made of a single leaf gets the one-bit code ``0``.
        """
        codes = {}
        if root.is_leaf:
            codes[root.symbol] = ZERO
        else:
            self._assign_codes(root, bitarray(), codes)
        return MappingProxyType(codes)

    def _assign_codes(self, node, path, codes):
        if node.is_leaf:
            if node.symbol in codes:
                raise MalformedTreeError(f"symbol {node.symbol} appears on more than one leaf")
            codes[node.symbol] = frozenbitarray(path)
            return
        if node.left is None or node.right is None:
            raise MalformedTreeError(f"internal node {node!r} does not have two children")
        self._assign_codes(node.left, path + ZERO, codes)
        self._assign_codes(node.right, path + ONE, codes)

    def encode(self, data, codes):
        data = as_bytes(data)
        missing = set(data).difference(codes)
        if missing:
            raise UnknownSymbolError(missing)
        encoded = bitarray()
        if data:
            # bitarray rejects an empty code dict even for empty input
            encoded.encode(dict(codes), data)
        logger.debug("encoded %d bytes into %d bits", len(data), len(encoded))
        return encoded

    def decode(self, bits, root):
        bits = to_bits(bits)
        if root.is_leaf:
            if bits.any():
                position = bits.index(1)
                raise TruncatedCodeError(position, f"bit {position} does not lead to a leaf")
            return bytes([root.symbol]) * len(bits)

        decoded = bytearray()
        node = root
        for bit in bits:
            node = node.right if bit else node.left
            if node is None:
                raise MalformedTreeError("internal node does not have two children")
            if node.is_leaf:
                decoded.append(node.symbol)
                node = root
        if node is not root:
            raise TruncatedCodeError(len(bits))
        logger.debug("decoded %d bits into %d bytes", len(bits), len(decoded))
        return bytes(decoded)

    def describe_tree(self, root, codes):
        return [(leaf.symbol, leaf.freq, codes[leaf.symbol].to01()) for leaf in iter_leaves(root)]

    def render_tree(self, root):
        """Render the tree on one line, e.g. ``:5() {a:2(0), :3(1) {...}}``."""
        if root.is_leaf:
            return f"{symbol_label(root.symbol)}:{root.freq}({ZERO.to01()})"
        return self._render(root, "")

    def _render(self, node, path):
        if node.is_leaf:
            return f"{symbol_label(node.symbol)}:{node.freq}({path})"
        return (
            f":{node.freq}({path}) {{"
            f"{self._render(node.left, path + '0')}, {self._render(node.right, path + '1')}}}"
        )

    def serialize_tree(self, root):
        """Pre-order bits: ``0`` for a merged node, ``1`` plus 8 symbol bits for a leaf."""
        bits = bitarray()
        stack = [root]
        while stack:
            node = stack.pop()
            if node.is_leaf:
                bits.append(1)
                bits += int2ba(node.symbol, length=SYMBOL_BITS)
                continue
            if node.left is None or node.right is None:
                raise MalformedTreeError(f"internal node {node!r} does not have two children")
            bits.append(0)
            stack.append(node.right)
            stack.append(node.left)
        return bits

    def deserialize_tree(self, bits, start=0):
        """Rebuild a tree written by :meth:`serialize_tree`.

        Returns the root and the position of the first bit after the tree.
        Counts are not stored, so every rebuilt node has a frequency of 0.
        """
        bits = to_bits(bits)
        position = start
        root = None
        # merged nodes still waiting for a child
        open_nodes = []
        seen = set()
        merged = 0
        while root is None or open_nodes:
            if position >= len(bits):
                raise CorruptStreamError("tree description is truncated")
            if bits[position]:
                end = position + 1 + SYMBOL_BITS
                if end > len(bits):
                    raise CorruptStreamError("tree description is truncated")
                symbol = ba2int(bits[position + 1:end])
                if symbol in seen:
                    raise CorruptStreamError(f"symbol {symbol} appears twice in the tree")
                seen.add(symbol)
                node = HuffmanNode.leaf(symbol, 0)
                position = end
            else:
                merged += 1
                if merged >= ALPHABET_SIZE:
                    raise CorruptStreamError("tree description has more nodes than a byte alphabet allows")
                node = HuffmanNode(None, 0, seq=merged)
                position += 1

            if root is None:
                root = node
            else:
                parent = open_nodes[-1]
                if parent.left is None:
                    parent.left = node
                else:
                    parent.right = node
                    open_nodes.pop()
            if not node.is_leaf:
                open_nodes.append(node)
        return root, position
