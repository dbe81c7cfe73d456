# filename: huffman_service.py

import logging
import struct

from bitarray import bitarray

from huffman_core import HuffmanLogic, as_bytes
from huffman_errors import CorruptStreamError, HuffmanError

logger = logging.getLogger(__name__)

MAGIC = b"HUF\x01"
# magic, number of payload bits
HEADER = struct.Struct(">4sQ")


class HuffmanCodebook:
    """Tree and code table built from one input, shared by encode and decode.

    Both are read-only once built. ``release()`` (or leaving a ``with`` block)
    drops them; a released codebook refuses further work.
    """

    def __init__(self, logic, frequencies, root, codes):
        self.logic = logic
        self.frequencies = frequencies
        self.root = root
        self.codes = codes

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False

    @property
    def released(self):
        return self.root is None

    def _check(self):
        if self.released:
            raise HuffmanError("codebook has been released")

    def encode(self, data):
        self._check()
        return self.logic.encode(data, self.codes)

    def encode_to_string(self, data):
        return self.encode(data).to01()

    def decode(self, bits):
        self._check()
        return self.logic.decode(bits, self.root)

    def describe(self):
        self._check()
        return self.logic.describe_tree(self.root, self.codes)

    def render(self):
        self._check()
        return self.logic.render_tree(self.root)

    def encoded_size(self):
        """Length in bits of the encoding of the input this codebook was built from."""
        self._check()
        return sum(len(self.codes[symbol]) * count for symbol, count in self.frequencies.items())

    def release(self):
        self.root = None
        self.codes = None
        self.frequencies = None


class HuffmanService:
    def __init__(self, logic=None):
        self.logic = logic or HuffmanLogic()

    def build_codebook(self, data):
        frequencies = self.logic.count_frequencies(data)
        root = self.logic.build_tree(frequencies)
        codes = self.logic.generate_codes(root)
        return HuffmanCodebook(self.logic, frequencies, root, codes)

    def compress(self, data):
        data = as_bytes(data)
        if not data:
            return b""
        with self.build_codebook(data) as book:
            payload = book.encode(data)
            stream = self.logic.serialize_tree(book.root)
        stream += payload
        # tobytes() pads the last byte with zero bits
        compressed = HEADER.pack(MAGIC, len(payload)) + stream.tobytes()
        logger.debug("compressed %d bytes into %d bytes", len(data), len(compressed))
        return compressed

    def decompress(self, blob):
        blob = bytes(blob)
        if not blob:
            return b""
        if len(blob) < HEADER.size:
            raise CorruptStreamError(f"stream of {len(blob)} bytes is shorter than its header")
        magic, payload_bits = HEADER.unpack_from(blob)
        if magic != MAGIC:
            raise CorruptStreamError(f"bad magic {magic!r}")

        bits = bitarray()
        bits.frombytes(blob[HEADER.size:])
        root, start = self.logic.deserialize_tree(bits)
        end = start + payload_bits
        if end > len(bits):
            raise CorruptStreamError(
                f"payload is truncated: {len(bits) - start} of {payload_bits} bits present"
            )
        if len(bits) - end >= 8 or bits[end:].any():
            raise CorruptStreamError("unexpected data after the payload")

        decoded = self.logic.decode(bits[start:end], root)
        logger.debug("decompressed %d bytes into %d bytes", len(blob), len(decoded))
        return decoded
