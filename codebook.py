"""
Line-oriented persistence of a Huffman code.

A saved code is a sequence of line pairs: the symbol as a decimal integer,
then its codeword as a string of '0'/'1'. Pairs may appear in any order;
there is no header and no count.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, Iterator, Optional, TextIO, Tuple

from loguru import logger

from errors import MalformedCodeError
from huffman import MAX_SYMBOL, Internal, Leaf, Node


def iter_code_pairs(root: Optional[Node]) -> Iterator[Tuple[int, str]]:
    """Yield (symbol, codeword) for every leaf, left subtree before right."""
    stack = [(root, '')]
    while stack:
        node, so_far = stack.pop()
        if node is None:
            continue
        if isinstance(node, Leaf):
            yield node.symbol, so_far
        else:
            # right pushed first so the left subtree comes out first
            stack.append((node.right, so_far + '1'))
            stack.append((node.left, so_far + '0'))


def save_code(root: Optional[Node], output: TextIO) -> int:
    """Write the code to output; returns the number of pairs written."""
    count = 0
    for symbol, codeword in iter_code_pairs(root):
        output.write(f"{symbol}\n{codeword}\n")
        count += 1
    return count


class _Branch:
    """Mutable placeholder for an internal node while a code is being loaded."""

    __slots__ = ("left", "right")

    def __init__(self):
        self.left = None
        self.right = None


class TreeGrower:
    """
    Grows a tree one (symbol, codeword) pair at a time.

    Only _Branch placeholders are mutated; finish() freezes the result into
    Leaf/Internal nodes. Pairs that would make the outcome depend on their
    order are rejected: a codeword running through another symbol's leaf or
    ending on a node that already has children, two symbols sharing a
    codeword, and one symbol given two codewords. Repeating an identical
    pair is a no-op.
    """

    def __init__(self):
        self._root = None
        self._codewords: Dict[int, str] = {}

    @property
    def pairs(self) -> int:
        return len(self._codewords)

    def add(self, symbol: int, codeword: str, line_number: Optional[int] = None) -> None:
        if not 0 <= symbol <= MAX_SYMBOL:
            raise MalformedCodeError(f"symbol {symbol} is outside 0..{MAX_SYMBOL}", line_number)
        bad = set(codeword) - {'0', '1'}
        if bad:
            raise MalformedCodeError(
                f"codeword {codeword!r} contains characters other than '0'/'1': {''.join(sorted(bad))!r}",
                line_number,
            )

        previous = self._codewords.get(symbol)
        if previous == codeword:
            return
        if previous is not None:
            raise MalformedCodeError(
                f"symbol {symbol} has codeword {codeword!r} but already has {previous!r}", line_number
            )

        if codeword == '':
            if isinstance(self._root, _Branch):
                raise MalformedCodeError(f"empty codeword for symbol {symbol} alongside other codewords", line_number)
            self._root = self._install(self._root, symbol, codeword, line_number)
            self._codewords[symbol] = codeword
            return

        if self._root is None:
            self._root = _Branch()
        elif isinstance(self._root, Leaf):
            raise MalformedCodeError(
                f"codeword {codeword!r} conflicts with empty codeword of symbol {self._root.symbol}", line_number
            )

        curr = self._root
        for depth, bit in enumerate(codeword[:-1]):
            child = curr.left if bit == '0' else curr.right
            if child is None:
                child = _Branch()
            elif isinstance(child, Leaf):
                raise MalformedCodeError(
                    f"codeword {codeword!r} has prefix {codeword[:depth + 1]!r} "
                    f"already assigned to symbol {child.symbol}",
                    line_number,
                )
            if bit == '0':
                curr.left = child
            else:
                curr.right = child
            curr = child

        if codeword[-1] == '0':
            curr.left = self._install(curr.left, symbol, codeword, line_number)
        else:
            curr.right = self._install(curr.right, symbol, codeword, line_number)
        self._codewords[symbol] = codeword

    @staticmethod
    def _install(existing, symbol: int, codeword: str, line_number: Optional[int]) -> Leaf:
        if isinstance(existing, _Branch):
            raise MalformedCodeError(
                f"codeword {codeword!r} of symbol {symbol} is a prefix of other codewords", line_number
            )
        if isinstance(existing, Leaf):
            raise MalformedCodeError(
                f"codeword {codeword!r} of symbol {symbol} already assigned to symbol {existing.symbol}", line_number
            )
        return Leaf(symbol)

    def finish(self) -> Optional[Node]:
        def freeze(node):
            if node is None or isinstance(node, Leaf):
                return node
            return Internal(freeze(node.left), freeze(node.right))

        return freeze(self._root)


_SYMBOL_LINE = re.compile(r"[0-9]+")


def _strip_eol(line: str) -> str:
    if line.endswith('\n'):
        line = line[:-1]
    if line.endswith('\r'):
        line = line[:-1]
    return line


def load_code(lines: Iterable[str]) -> Optional[Node]:
    """
    Rebuild a tree from saved line pairs.

    lines is any iterable of text lines, typically an open file. Zero pairs
    gives None (an empty code). Any format violation raises
    MalformedCodeError and no tree is returned.
    """
    grower = TreeGrower()
    pending_symbol = None
    pending_line = 0
    line_number = 0
    for line_number, raw in enumerate(lines, start=1):
        line = _strip_eol(raw)
        if pending_symbol is None:
            if not _SYMBOL_LINE.fullmatch(line):
                raise MalformedCodeError(f"symbol line {line!r} is not a decimal integer", line_number)
            pending_symbol = int(line)
            pending_line = line_number
        else:
            grower.add(pending_symbol, line, line_number)
            pending_symbol = None

    if pending_symbol is not None:
        raise MalformedCodeError(f"input ended before the codeword of symbol {pending_symbol}", pending_line)

    logger.debug("loaded {} code pairs from {} lines", grower.pairs, line_number)
    return grower.finish()
