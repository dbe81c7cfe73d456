import os
import sys
import random
import struct
import time

import pytest

# Add the project root to path
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

import huffman_service as hs
import huffman_core as hc
from huffman_errors import CorruptStreamError, EmptyAlphabetError, HuffmanError, TruncatedCodeError


def _get_service():
	return hs.HuffmanService()


def test_roundtrip_random_10kb():
	svc = _get_service()

	data = bytes(random.getrandbits(8) for _ in range(10 * 1024))
	compressed = svc.compress(data)
	out = svc.decompress(compressed)
	assert out == data


def test_roundtrip_all_bytes_once():
	svc = _get_service()

	data = bytes(range(256))
	compressed = svc.compress(data)
	out = svc.decompress(compressed)
	assert out == data


def test_empty_input():
	svc = _get_service()
	data = b""
	compressed = svc.compress(data)
	out = svc.decompress(compressed)
	assert out == data


def test_single_byte_repeated_small():
	svc = _get_service()

	data = b'A' * (1024 * 10)
	compressed = svc.compress(data)
	out = svc.decompress(compressed)
	assert out == data
	# one bit per byte plus header and tree
	assert len(compressed) < len(data) // 7


def test_small_inputs():
	svc = _get_service()

	for n in (1, 2, 3):
		data = bytes(random.getrandbits(8) for _ in range(n))
		compressed = svc.compress(data)
		out = svc.decompress(compressed)
		assert out == data


def test_skewed_input_shrinks():
	svc = _get_service()
	data = b"a" * 1000 + b"b" * 10 + b"c"
	assert len(svc.compress(data)) < len(data) // 4


def test_compress_layout():
	svc = _get_service()
	data = b"abracadabra"
	compressed = svc.compress(data)
	magic, payload_bits = hs.HEADER.unpack_from(compressed)
	assert magic == hs.MAGIC
	with svc.build_codebook(data) as book:
		assert payload_bits == book.encoded_size() == len(book.encode(data))


def test_truncated_stream_behavior():
	svc = _get_service()

	data = b'This is a test' * 100
	compressed = svc.compress(data)
	truncated = compressed[:-3]
	with pytest.raises(CorruptStreamError):
		svc.decompress(truncated)


def test_truncated_header():
	svc = _get_service()
	compressed = svc.compress(b"Hello World")
	with pytest.raises(CorruptStreamError):
		svc.decompress(compressed[:hs.HEADER.size - 1])


def test_corrupted_header_behavior():
	svc = _get_service()

	data = b'Hello World' * 50
	compressed = bytearray(svc.compress(data))
	# flip some bits in the beginning to simulate header corruption
	compressed[0] ^= 0xFF
	with pytest.raises(CorruptStreamError):
		svc.decompress(bytes(compressed))


def test_trailing_bytes_rejected():
	svc = _get_service()
	compressed = svc.compress(b"Hello World")
	with pytest.raises(CorruptStreamError):
		svc.decompress(compressed + b"\x00")


def test_payload_ending_mid_code():
	svc = _get_service()
	data = b"aabbccddbbeaebdddfffdbffddabbbbbcdefaabbcccccaabbddfffdcecc"
	compressed = svc.compress(data)
	_, payload_bits = hs.HEADER.unpack_from(compressed)
	# claim one bit less; the dropped bit becomes padding
	shortened = struct.pack(">4sQ", hs.MAGIC, payload_bits - 1) + compressed[hs.HEADER.size:]
	with pytest.raises((TruncatedCodeError, CorruptStreamError)):
		svc.decompress(shortened)


def test_codebook_encode_decode():
	svc = _get_service()
	data = b"the quick brown fox jumps over the lazy dog"
	book = svc.build_codebook(data)
	bits = book.encode(data)
	assert book.decode(bits) == data
	assert book.decode(book.encode_to_string(data)) == data
	assert sum(freq for _, freq, _ in book.describe()) == len(data)
	assert book.render().startswith(f":{len(data)}() {{")


def test_codebook_release():
	svc = _get_service()
	with svc.build_codebook(b"abc") as book:
		assert not book.released
		book.encode(b"cab")
	assert book.released
	assert book.root is None and book.codes is None
	with pytest.raises(HuffmanError):
		book.encode(b"abc")
	with pytest.raises(HuffmanError):
		book.decode("0")


def test_codebook_requires_symbols():
	svc = _get_service()
	with pytest.raises(EmptyAlphabetError):
		svc.build_codebook(b"")


@pytest.mark.timeout(120)
def test_performance_1mb_baseline():
	svc = _get_service()
	data = bytes(random.getrandbits(8) for _ in range(1024 * 1024))
	t0 = time.time()
	_ = svc.compress(data)
	dur = time.time() - t0
	assert dur >= 0
	print(f"Compression time for 1MB: {dur:.4f}s")


def test_service_initializes_logic_attribute():
	svc = _get_service()
	assert isinstance(svc.logic, hc.HuffmanLogic)


def test_service_accepts_logic():
	logic = hc.HuffmanLogic()
	assert hs.HuffmanService(logic).logic is logic


def test_compress_empty_returns_empty_bytes():
	svc = _get_service()
	out = svc.compress(b"")
	assert out == b""


def test_compress_is_deterministic():
	svc = _get_service()
	data = b"aabbccddbbeaebdddfffdbffddabbbbbcdefaabbcccccaabbddfffdcecc"
	assert svc.compress(data) == svc.compress(bytearray(data))
