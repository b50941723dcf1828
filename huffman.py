from __future__ import annotations

import heapq
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Sequence, Union

from loguru import logger

from errors import EmptyAlphabetError, InvalidFrequencyError

MAX_SYMBOL = 255 # symbols are single byte values


@dataclass(frozen=True)
class Leaf: # Huffman tree leaf, holds exactly one symbol
    symbol: int
    weight: int = 0


@dataclass(frozen=True)
class Internal: # Huffman tree branch, holds no symbol
    left: Optional[Node] # None only in a tree reloaded from an incomplete code
    right: Optional[Node]
    weight: int = 0


Node = Union[Leaf, Internal]

FrequencyTable = Union[Mapping[Union[int, str], int], Sequence[int]]


def _symbol_of(key) -> int:
    if isinstance(key, str):
        if len(key) != 1:
            raise InvalidFrequencyError(f"symbol must be a single character, got {key!r}")
        key = ord(key)
    if isinstance(key, bool) or not isinstance(key, int):
        raise InvalidFrequencyError(f"symbol must be an int or a character, got {key!r}")
    if not 0 <= key <= MAX_SYMBOL:
        raise InvalidFrequencyError(f"symbol {key} is outside 0..{MAX_SYMBOL}")
    return key


def normalize_frequencies(frequency_table: FrequencyTable) -> Dict[int, int]:
    """
    Turn a mapping (symbol -> frequency) or a sequence indexed by code point
    into {symbol: frequency} holding only the entries with frequency >= 1.
    """
    items = frequency_table.items() if isinstance(frequency_table, Mapping) else enumerate(frequency_table)
    freqs: Dict[int, int] = {}
    for key, frequency in items:
        if isinstance(frequency, bool) or not isinstance(frequency, int):
            raise InvalidFrequencyError(f"frequency of symbol {key!r} must be an int, got {frequency!r}")
        if frequency < 0:
            raise InvalidFrequencyError(f"frequency of symbol {key!r} is negative ({frequency})")
        if frequency == 0: # absent symbols, wherever they sit in the table
            continue
        symbol = _symbol_of(key)
        if symbol in freqs:
            raise InvalidFrequencyError(f"symbol {symbol} appears more than once")
        freqs[symbol] = frequency
    return freqs


def build_huffman_tree(frequency_table: FrequencyTable) -> Node:
    """
    Classical greedy Huffman construction.

    Heap entries are keyed (weight, sequence). Leaves take sequence numbers in
    ascending symbol order, every merge takes the next one, so equal weights
    are broken by insertion order and the tree is reproducible. The first node
    popped becomes the left child.
    """
    freqs = normalize_frequencies(frequency_table)
    if not freqs:
        raise EmptyAlphabetError()

    priority_queue = []
    for sequence, symbol in enumerate(sorted(freqs)):
        priority_queue.append((freqs[symbol], sequence, Leaf(symbol, freqs[symbol])))
    heapq.heapify(priority_queue)
    sequence = len(priority_queue)

    # Build the tree
    while len(priority_queue) > 1:
        left_weight, _, left = heapq.heappop(priority_queue)
        right_weight, _, right = heapq.heappop(priority_queue)
        merged = Internal(left, right, left_weight + right_weight)
        heapq.heappush(priority_queue, (merged.weight, sequence, merged))
        sequence += 1

    root = priority_queue[0][2]
    logger.debug("built Huffman tree over {} symbols, total weight {}", len(freqs), root.weight)
    return root


def generate_huffman_codes(root: Optional[Node]) -> Dict[int, str]: # root: root of the Huffman tree
    codes: Dict[int, str] = {}

    def generate_codes_helper(node, current_code):
        if node is None:
            return
        if isinstance(node, Leaf):
            codes[node.symbol] = current_code
            return
        generate_codes_helper(node.left, current_code + '0')
        generate_codes_helper(node.right, current_code + '1')

    generate_codes_helper(root, '')
    return codes # a root leaf maps to the empty codeword


def freq_table(data: bytes) -> Dict[int, int]:
    ft: Dict[int, int] = {}
    for b in data:
        ft[b] = ft.get(b, 0) + 1
    return ft


def huffman_encode(data: bytes, code_map: Dict[int, str]) -> str:
    return ''.join(code_map[byte] for byte in data)
