from typing import Optional


class HuffmanError(Exception):
    """Base class for every error raised while building, loading or decoding a code."""


class EmptyAlphabetError(HuffmanError, ValueError):
    def __init__(self, message: str = "frequency table has no symbol with frequency >= 1"):
        super().__init__(message)


class InvalidFrequencyError(HuffmanError, ValueError):
    pass


class MalformedCodeError(HuffmanError, ValueError):
    """Serialized code input violates the line-pair format."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        self.line_number = line_number # 1-based line of the offending input, if known
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class DecodeError(HuffmanError):
    pass


class IncompleteTreeError(DecodeError):
    """
    Decoding walked into a child slot that no codeword ever reached.

    symbols_emitted counts the symbols already yielded, which a caller can
    use to decide whether the decoded prefix is usable.
    """

    def __init__(self, bit_offset: int, symbols_emitted: int):
        self.bit_offset = bit_offset
        self.symbols_emitted = symbols_emitted
        super().__init__(
            f"no codeword continues at bit {bit_offset} "
            f"({self.symbols_emitted} symbols decoded before failure)"
        )


class DegenerateSingleSymbolError(DecodeError):
    def __init__(self, symbol: int):
        self.symbol = symbol
        super().__init__(
            f"code has a single symbol ({symbol}) with an empty codeword; "
            "pass single_symbol_count to decode it"
        )
