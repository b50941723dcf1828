from __future__ import annotations

from typing import Iterator, Optional

from bitio import BitSource
from errors import DegenerateSingleSymbolError, IncompleteTreeError
from huffman import Leaf, Node


class StreamDecoder:
    """
    Bit-driven walk of a Huffman tree.

    Each fed bit moves the cursor one level down (0 left, 1 right). Reaching a
    leaf emits its symbol and puts the cursor back at the root.

    A tree whose root is a leaf has no codeword bits at all, so it cannot be
    decoded from bits. Such a code is only decodable through
    decode_symbols(..., single_symbol_count=n), which emits the symbol n times.
    """

    def __init__(self, root: Optional[Node]):
        self.root = root
        self.cursor = root
        self.bit_offset = 0 # bits fed so far
        self.symbols_emitted = 0

    @property
    def at_boundary(self) -> bool:
        """True when no codeword is partially consumed."""
        return self.cursor is self.root

    def feed(self, bit: int) -> Optional[int]:
        if bit not in (0, 1):
            raise ValueError(f"bit must be 0 or 1, got {bit!r}")
        if isinstance(self.root, Leaf):
            raise DegenerateSingleSymbolError(self.root.symbol)

        node = self.cursor
        nxt = None if node is None else (node.left if bit == 0 else node.right)
        if nxt is None:
            raise IncompleteTreeError(self.bit_offset, self.symbols_emitted)
        self.bit_offset += 1

        if isinstance(nxt, Leaf): # leaf reached
            self.symbols_emitted += 1
            self.cursor = self.root
            return nxt.symbol
        self.cursor = nxt
        return None


def decode_symbols(
    root: Optional[Node], source: BitSource, single_symbol_count: Optional[int] = None
) -> Iterator[int]:
    """
    Yield decoded symbols until the bit source is exhausted.

    single_symbol_count is required when the root is a leaf and ignored
    otherwise; the source is left untouched in that case. Bits left over
    after the last full codeword (padding) are consumed and dropped.
    """
    if isinstance(root, Leaf):
        if single_symbol_count is None:
            raise DegenerateSingleSymbolError(root.symbol)
        if single_symbol_count < 0:
            raise ValueError(f"single_symbol_count must be >= 0, got {single_symbol_count}")
        for _ in range(single_symbol_count):
            yield root.symbol
        return

    decoder = StreamDecoder(root)
    while source.has_next_bit():
        symbol = decoder.feed(source.next_bit())
        if symbol is not None:
            yield symbol
