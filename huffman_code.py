from __future__ import annotations

from typing import BinaryIO, Dict, Iterable, List, Optional, TextIO, Tuple

from bitio import BitSource, pack_bits_from_codes
from codebook import iter_code_pairs, load_code, save_code
from decoder import decode_symbols
from huffman import FrequencyTable, Internal, Leaf, Node, build_huffman_tree, generate_huffman_codes, huffman_encode


class HuffmanCode:
    """
    A Huffman code for byte symbols, owning one read-only tree.

    Build it from frequencies with from_frequencies() or from a saved code
    with load(); rebuilding produces a new object rather than changing this one.
    """

    def __init__(self, root: Optional[Node]):
        self._root = root
        self._codes: Optional[Dict[int, str]] = None

    @classmethod
    def from_frequencies(cls, frequency_table: FrequencyTable) -> HuffmanCode:
        return cls(build_huffman_tree(frequency_table))

    @classmethod
    def load(cls, lines: Iterable[str]) -> HuffmanCode:
        return cls(load_code(lines))

    @property
    def root(self) -> Optional[Node]:
        return self._root

    @property
    def is_empty(self) -> bool:
        return self._root is None

    @property
    def is_degenerate(self) -> bool:
        return isinstance(self._root, Leaf)

    def is_complete(self) -> bool:
        """False if some child slot was never reached by a loaded codeword."""
        stack = [self._root] if self._root is not None else []
        while stack:
            node = stack.pop()
            if isinstance(node, Internal):
                if node.left is None or node.right is None:
                    return False
                stack.extend((node.left, node.right))
        return True

    @property
    def codes(self) -> Dict[int, str]:
        if self._codes is None:
            self._codes = generate_huffman_codes(self._root)
        return dict(self._codes)

    def pairs(self) -> List[Tuple[int, str]]:
        return list(iter_code_pairs(self._root))

    def save(self, output: TextIO) -> int:
        return save_code(self._root, output)

    def encode(self, data: bytes) -> Tuple[bytes, int]:
        """Pack data with this code; returns (packed_bytes, pad_bits)."""
        return pack_bits_from_codes(data, self.codes)

    def encode_bitstring(self, data: bytes) -> str:
        codes = self.codes
        missing = set(data) - set(codes)
        if missing:
            raise ValueError(f"no codeword for symbols {sorted(missing)}")
        return huffman_encode(data, codes)

    def decode(self, source: BitSource, single_symbol_count: Optional[int] = None) -> bytes:
        return bytes(decode_symbols(self._root, source, single_symbol_count))

    def translate(self, source: BitSource, output: BinaryIO, single_symbol_count: Optional[int] = None) -> int:
        """Write one byte per decoded symbol to output; returns the symbol count."""
        count = 0
        for symbol in decode_symbols(self._root, source, single_symbol_count):
            output.write(bytes((symbol,)))
            count += 1
        return count

    def __eq__(self, other):
        if not isinstance(other, HuffmanCode):
            return NotImplemented
        return dict(self.pairs()) == dict(other.pairs())

    def __repr__(self):
        return f"HuffmanCode({len(self.pairs())} symbols)"
