import random

import pytest

from bitio import BitInputStream
from codebook import load_code
from decoder import StreamDecoder, decode_symbols
from errors import DegenerateSingleSymbolError, IncompleteTreeError
from huffman import build_huffman_tree, generate_huffman_codes

CLASSIC = {'A': 5, 'B': 9, 'C': 12, 'D': 13, 'E': 16, 'F': 45}


def _decode(root, bits, **kwargs):
    return list(decode_symbols(root, BitInputStream.from_bitstring(bits), **kwargs))


def test_decodes_concatenated_codewords():
    root = build_huffman_tree(CLASSIC)
    # F C D A B E
    assert _decode(root, "0" "100" "101" "1100" "1101" "111") == [ord(c) for c in "FCDABE"]


@pytest.mark.parametrize("seed", range(8))
def test_decodes_every_symbol_per_frequency(seed):
    rng = random.Random(seed)
    table = {s: rng.randint(1, 20) for s in rng.sample(range(256), rng.randint(2, 40))}
    root = build_huffman_tree(table)
    codes = generate_huffman_codes(root)
    message = [s for s, f in table.items() for _ in range(f)]
    rng.shuffle(message)
    decoded = _decode(root, "".join(codes[s] for s in message))
    assert decoded == message


def test_trailing_partial_codeword_is_dropped():
    root = build_huffman_tree(CLASSIC)
    decoder = StreamDecoder(root)
    assert decoder.feed(0) == ord('F')
    assert decoder.at_boundary
    assert decoder.feed(1) is None
    assert decoder.feed(1) is None
    assert not decoder.at_boundary
    assert _decode(root, "0" "11") == [ord('F')]


def test_incomplete_tree_reports_offset_and_emitted_count():
    root = load_code(["65", "00", "66", "01", "67", "10"])
    with pytest.raises(IncompleteTreeError) as excinfo:
        _decode(root, "00" "10" "11")
    err = excinfo.value
    assert err.bit_offset == 5
    assert err.symbols_emitted == 2


def test_empty_code_fails_on_first_bit():
    assert _decode(None, "") == []
    with pytest.raises(IncompleteTreeError) as excinfo:
        _decode(None, "1")
    assert excinfo.value.bit_offset == 0
    assert excinfo.value.symbols_emitted == 0


def test_single_symbol_requires_count():
    root = build_huffman_tree({'A': 3})
    with pytest.raises(DegenerateSingleSymbolError) as excinfo:
        _decode(root, "")
    assert excinfo.value.symbol == ord('A')


def test_single_symbol_with_count():
    root = build_huffman_tree({'A': 3})
    source = BitInputStream.from_bitstring("1")
    assert list(decode_symbols(root, source, single_symbol_count=3)) == [65, 65, 65]
    assert source.has_next_bit()


def test_single_symbol_feed_rejected():
    with pytest.raises(DegenerateSingleSymbolError):
        StreamDecoder(build_huffman_tree({'A': 3})).feed(0)


def test_negative_count_rejected():
    with pytest.raises(ValueError):
        _decode(build_huffman_tree({'A': 3}), "", single_symbol_count=-1)


def test_count_ignored_for_regular_tree():
    assert _decode(build_huffman_tree(CLASSIC), "0", single_symbol_count=5) == [ord('F')]


def test_bad_bit_value():
    with pytest.raises(ValueError):
        StreamDecoder(build_huffman_tree(CLASSIC)).feed(2)


def test_streaming_decode_counts_symbols_before_failure():
    root = load_code(["65", "00", "66", "01", "67", "10"])
    symbols = decode_symbols(root, BitInputStream.from_bitstring("01" * 500 + "11"))
    received = []
    with pytest.raises(IncompleteTreeError) as excinfo:
        for symbol in symbols:
            received.append(symbol)
    assert received == [66] * 500
    assert excinfo.value.symbols_emitted == 500
    assert excinfo.value.bit_offset == 1001


def test_decoder_tracks_count_not_symbols():
    decoder = StreamDecoder(build_huffman_tree(CLASSIC))
    for bit in (0, 0, 1, 1, 1):
        decoder.feed(bit)
    assert decoder.symbols_emitted == 3
    assert decoder.bit_offset == 5
    assert not hasattr(decoder, "emitted")
