# filename: huffman_errors.py


class HuffmanError(Exception):
    """Base class for every failure raised by the coder."""


class EmptyAlphabetError(HuffmanError, ValueError):
    def __init__(self):
        super().__init__("cannot build a Huffman tree without any symbol")


class UnknownSymbolError(HuffmanError, KeyError):
    def __init__(self, symbols):
        self.symbols = tuple(sorted(symbols))
        listed = ", ".join(f"0x{s:02x}" for s in self.symbols)
        super().__init__(f"no code for symbol(s): {listed}")

    def __str__(self):
        # KeyError would repr() the message
        return self.args[0]


class TruncatedCodeError(HuffmanError, ValueError):
    def __init__(self, position, message=None):
        self.position = position
        super().__init__(message or f"bit sequence ends in the middle of a code (bit {position})")


class MalformedTreeError(HuffmanError):
    pass


class InvalidBitStringError(HuffmanError, ValueError):
    pass


class CorruptStreamError(HuffmanError):
    pass
