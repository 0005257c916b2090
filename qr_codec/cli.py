"""Command line entry point: ``qr-codec encode`` and ``qr-codec decode``."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from PIL import Image

from .config import EncoderConfig
from .decoder import QRDecoder
from .encoder import QREncoder
from .errors import EncodeError
from .image import sample_image, save_image
from .tables import EC_LEVELS

EXIT_OK = 0
EXIT_DECODE_FAILURE = 1
EXIT_USAGE = 2


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="qr-codec",
        description="Encode text into QR Code symbols and decode rendered symbols.",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Log every pipeline step.")
    sub = p.add_subparsers(dest="command", required=True)

    enc = sub.add_parser("encode", help="Encode TEXT and print the symbol.")
    enc.add_argument("text")
    enc.add_argument("--ec-level", choices=EC_LEVELS, default="M")
    enc.add_argument("--version", type=int, default=None,
                     help="Symbol version 1-40 (default: smallest that fits).")
    enc.add_argument("--mask", type=int, default=None,
                     help="Mask pattern 0-7 (default: lowest penalty).")
    enc.add_argument("--output", type=Path, default=None, help="Also write a PNG here.")
    enc.add_argument("--scale", type=int, default=10)
    enc.add_argument("--border", type=int, default=4)

    dec = sub.add_parser("decode", help="Decode an axis-aligned rendered symbol.")
    dec.add_argument("image", type=Path)
    dec.add_argument("--scale", type=int, default=10)
    dec.add_argument("--border", type=int, default=4)
    return p


def _encode(args: argparse.Namespace) -> int:
    config = EncoderConfig(ec_level=args.ec_level, version=args.version,
                           mask_pattern=args.mask)
    try:
        symbol = QREncoder(config).encode(args.text)
    except (EncodeError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_USAGE

    print(symbol.to_string(border=2))
    print(f"version {symbol.version}-{symbol.ec_level}, mask {symbol.mask_pattern}")
    if args.output is not None:
        save_image(symbol.matrix, str(args.output), args.scale, args.border)
    return EXIT_OK


def _decode(args: argparse.Namespace) -> int:
    try:
        with Image.open(args.image) as img:
            matrix = sample_image(img, args.scale, args.border)
    except (OSError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_USAGE

    result = QRDecoder().decode(matrix)
    if result.text:
        print(result.text)
    print(f"confidence {result.confidence:.3f}", file=sys.stderr)
    if result.failure is not None:
        print(f"decode failed: {result.failure}", file=sys.stderr)
        return EXIT_DECODE_FAILURE
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    if args.command == "encode":
        return _encode(args)
    return _decode(args)


if __name__ == "__main__":
    raise SystemExit(main())
