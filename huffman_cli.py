#!/usr/bin/env python3
"""
Command line front end for the Huffman byte coder.

Sub-commands:
- inspect: show frequencies, tree, codes, encoded bits and decoded message
- compress / decompress: file round trip through the compressed container

Exit codes: 0 success, 1 I/O or library error, 2 empty input or usage error,
3 invalid encoded message.

Run with:
    python huffman_cli.py inspect --message "abracadabra"
"""
import argparse
import json
import logging
import sys
from pathlib import Path

from huffman_errors import (
    CorruptStreamError,
    EmptyAlphabetError,
    HuffmanError,
    InvalidBitStringError,
    TruncatedCodeError,
)
from huffman_service import HuffmanService

SAMPLE_MESSAGE = "aabbccddbbeaebdddfffdbffddabbbbbcdefaabbcccccaabbddfffdcecc"

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_EMPTY = 2
EXIT_INVALID_MESSAGE = 3


def display_symbol(symbol):
    """Printable characters are shown as themselves, anything else in hex."""
    if 0x20 <= symbol < 0x7F:
        return chr(symbol)
    return f"Hex: {symbol:x}"


def format_frequency(symbol, count):
    return f"{display_symbol(symbol)} : {count}"


def read_input(args):
    if args.file:
        return Path(args.file).read_bytes()
    return args.message.encode("utf-8")


def build_report(data, book, encoded, decoded):
    return {
        "input_bytes": len(data),
        "alphabet": [
            {"symbol": symbol, "frequency": freq, "code": code}
            for symbol, freq, code in book.describe()
        ],
        "encoded_bits": len(encoded),
        "packed_bytes": (len(encoded) + 7) // 8,
        "roundtrip_ok": decoded == data,
    }


def run_inspect(args, service):
    data = read_input(args)
    with service.build_codebook(data) as book:
        for symbol in sorted(book.frequencies):
            print(format_frequency(symbol, book.frequencies[symbol]))
        print(book.render())
        for symbol in sorted(book.codes):
            print(f"{display_symbol(symbol)}: {book.codes[symbol].to01()}")

        encoded = book.encode_to_string(data)
        print(f"encoded message: {encoded}")
        bits = encoded if args.decode is None else args.decode
        decoded = book.decode(bits)
        print(f"decoded message: {decoded.decode('utf-8', errors='replace')}")

        if args.report:
            report = build_report(data, book, encoded, decoded)
            output_path = Path(args.report)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, "w") as f:
                json.dump(report, f, indent=2)
            print(f"Report saved to: {output_path}")
    return EXIT_OK


def run_compress(args, service):
    data = Path(args.source).read_bytes()
    compressed = service.compress(data)
    Path(args.destination).write_bytes(compressed)
    if data:
        print(f"{len(compressed) * 100 / len(data):.2f}% compression ratio")
    print(f"{len(data)} bytes -> {len(compressed)} bytes")
    return EXIT_OK


def run_decompress(args, service):
    blob = Path(args.source).read_bytes()
    data = service.decompress(blob)
    Path(args.destination).write_bytes(data)
    print(f"{len(blob)} bytes -> {len(data)} bytes")
    return EXIT_OK


def build_parser():
    parser = argparse.ArgumentParser(description="Huffman coding of byte streams")
    parser.add_argument("--verbose", "-v", action="store_true", help="enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    inspect = commands.add_parser("inspect", help="show the code built for a message")
    source = inspect.add_mutually_exclusive_group()
    source.add_argument("--message", default=SAMPLE_MESSAGE, help="message to encode (default: sample message)")
    source.add_argument("--file", default=None, help="read the message from a file")
    inspect.add_argument("--decode", default=None, help="bit string to decode instead of the fresh encoding")
    inspect.add_argument("--report", default=None, help="write a JSON report to this path")
    inspect.set_defaults(func=run_inspect)

    compress = commands.add_parser("compress", help="compress a file")
    compress.add_argument("source")
    compress.add_argument("destination")
    compress.set_defaults(func=run_compress)

    decompress = commands.add_parser("decompress", help="decompress a file")
    decompress.add_argument("source")
    decompress.add_argument("destination")
    decompress.set_defaults(func=run_decompress)
    return parser


def main(argv=None):
    """Main entry point for the command line."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    service = HuffmanService()
    try:
        return args.func(args, service)
    except (TruncatedCodeError, InvalidBitStringError, CorruptStreamError) as e:
        print(f"ERROR: invalid encoded message: {e}", file=sys.stderr)
        return EXIT_INVALID_MESSAGE
    except EmptyAlphabetError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_EMPTY
    except (HuffmanError, OSError, MemoryError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
