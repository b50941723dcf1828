from __future__ import annotations

from typing import Dict, Iterable, Protocol, Tuple


class BitSource(Protocol):
    def has_next_bit(self) -> bool: ...

    def next_bit(self) -> int: ...


class BitInputStream:
    """
    Reads bits MSB-first from packed bytes, one bit per next_bit() call.
    The last pad_bits bits of the final byte are never returned.
    """

    def __init__(self, data: bytes, pad_bits: int = 0):
        if not 0 <= pad_bits <= 7:
            raise ValueError(f"pad_bits must be in 0..7, got {pad_bits}")
        if pad_bits and not data:
            raise ValueError("pad_bits given for empty data")
        self._data = bytes(data)
        self._total_bits = len(self._data) * 8 - pad_bits
        self.position = 0 # number of bits consumed so far

    @classmethod
    def from_bitstring(cls, bits: str) -> BitInputStream:
        """Build a stream from a textual '0'/'1' string."""
        if set(bits) - {'0', '1'}:
            raise ValueError(f"bitstring may only contain '0' and '1': {bits!r}")
        packed, pad_bits = pack_bits(bits)
        return cls(packed, pad_bits)

    def has_next_bit(self) -> bool:
        return self.position < self._total_bits

    def next_bit(self) -> int:
        if self.position >= self._total_bits:
            raise EOFError("no more bits in stream")
        byte = self._data[self.position >> 3]
        bit = (byte >> (7 - (self.position & 7))) & 1
        self.position += 1
        return bit

    def __len__(self) -> int:
        return self._total_bits


def pack_bits(bits: Iterable[str]) -> Tuple[bytes, int]:
    """
    Pack a stream of '0'/'1' characters into bytes.
    Returns (packed_bytes, pad_bits) where pad_bits is number of 0 bits added at the end
    """
    out = bytearray()
    acc = 0
    acc_bits = 0

    for ch in bits:
        acc = (acc << 1) | (1 if ch == '1' else 0)
        acc_bits += 1
        if acc_bits == 8:
            out.append(acc & 0xFF)
            acc = 0
            acc_bits = 0

    pad_bits = 0
    if acc_bits != 0:
        pad_bits = 8 - acc_bits
        acc = acc << pad_bits
        out.append(acc & 0xFF)

    return bytes(out), pad_bits


def pack_bits_from_codes(data: bytes, code_map: Dict[int, str]) -> Tuple[bytes, int]:
    """
    Converts Huffman codes into packed bytes
    Returns (packed_bytes, pad_bits)
    """
    missing = set(data) - set(code_map)
    if missing:
        raise ValueError(f"no codeword for symbols {sorted(missing)}")
    return pack_bits(ch for b in data for ch in code_map[b])
