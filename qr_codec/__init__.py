"""
QR Code codec following ISO/IEC 18004.

Encode text into a module matrix, and decode a (possibly partially
unknown) module matrix back into text:

    >>> from qr_codec import encode, decode
    >>> symbol = encode("HELLO WORLD", ec_level="Q")
    >>> decode(symbol.matrix).text
    'HELLO WORLD'

The building blocks (GF(256), Reed-Solomon, BCH, block interleaving,
matrix layout, masking, zigzag traversal) are importable from their own
modules.
"""

from .config import DecoderConfig, EncoderConfig
from .decoder import DecodeResult, QRDecoder, decode
from .encoder import EncodedSymbol, QREncoder, encode
from .errors import (DataTooLongError, DecodeFailure, DecodeStage, EncodeError,
                     UnsupportedCharacterError)

__version__ = "1.0.0"

__all__ = [
    "DataTooLongError",
    "DecodeFailure",
    "DecodeResult",
    "DecodeStage",
    "DecoderConfig",
    "EncodeError",
    "EncodedSymbol",
    "EncoderConfig",
    "QRDecoder",
    "QREncoder",
    "UnsupportedCharacterError",
    "decode",
    "encode",
]
