"""
BCH codes protecting format and version information.

Format information is a (15,5) BCH code with generator
x^10 + x^8 + x^5 + x^4 + x^2 + x + 1, XORed with a fixed mask so the word
is never all-zero. Version information (versions 7+) is an (18,6) BCH code
with generator x^12 + x^11 + x^10 + x^9 + x^8 + x^5 + x^2 + 1 and no mask.

Both codes are short enough that decoding is a brute-force search over
every combination of up to three flipped bits.

References:
- https://www.thonky.com/qr-code-tutorial/format-version-information
"""

from dataclasses import dataclass
from itertools import combinations
from typing import List, Optional

from .tables import EC_LEVEL_BITS, EC_LEVEL_FROM_BITS


# BCH generator polynomial: x^10 + x^8 + x^5 + x^4 + x^2 + x + 1
BCH_GENERATOR = 0b10100110111

# Format mask pattern
FORMAT_MASK = 0b101010000010010

# BCH generator polynomial: x^12 + x^11 + x^10 + x^9 + x^8 + x^5 + x^2 + 1
VERSION_GENERATOR = 0b1111100100101

FORMAT_BITS = 15
VERSION_BITS = 18

# Both codes guarantee correction of 3 bit errors
MAX_CORRECTABLE_BITS = 3


def bch_remainder(value: int, generator: int) -> int:
    """Remainder of the binary polynomial value modulo generator."""
    degree = generator.bit_length() - 1
    remainder = value
    for i in range(remainder.bit_length() - 1, degree - 1, -1):
        if remainder & (1 << i):
            remainder ^= generator << (i - degree)
    return remainder


def bch_encode(data_5bits: int) -> int:
    """
    Encode 5 data bits using (15,5) BCH code.

    Args:
        data_5bits: 5-bit integer (EC level 2 bits + mask pattern 3 bits)

    Returns:
        15-bit encoded format information (before final XOR)
    """
    return (data_5bits << 10) | bch_remainder(data_5bits << 10, BCH_GENERATOR)


def get_format_string(ec_level: str, mask_pattern: int) -> int:
    """Generate the complete 15-bit format string, mask applied."""
    if ec_level not in EC_LEVEL_BITS:
        raise ValueError(f"Invalid error correction level: {ec_level}")
    if not 0 <= mask_pattern <= 7:
        raise ValueError(f"Invalid mask pattern: {mask_pattern}")
    data_5bits = (EC_LEVEL_BITS[ec_level] << 3) | mask_pattern
    return bch_encode(data_5bits) ^ FORMAT_MASK


def get_version_string(version: int) -> int:
    """Generate the 18-bit version string (versions 7-40)."""
    if not 7 <= version <= 40:
        raise ValueError(f"Version information only exists for versions 7-40, got {version}")
    return (version << 12) | bch_remainder(version << 12, VERSION_GENERATOR)


def bits_to_list(value: int, length: int) -> List[int]:
    """MSB-first bit list."""
    return [(value >> (length - 1 - i)) & 1 for i in range(length)]


def list_to_bits(bits: List[int]) -> int:
    """Inverse of bits_to_list: MSB-first bits to an integer."""
    value = 0
    for bit in bits:
        value = (value << 1) | (bit & 1)
    return value


#==============================================================================
# DECODING
#==============================================================================

@dataclass(frozen=True)
class BCHResult:
    """
    A decoded BCH word.

    corrected is the nearest valid codeword (None when nothing within three
    bit flips is valid); data is its payload bits.
    """

    received: int
    corrected: Optional[int]
    error_count: int

    @property
    def is_valid(self) -> bool:
        return self.corrected is not None

    @property
    def confidence(self) -> float:
        if self.corrected is None:
            return 0.0
        return max(0.0, 1.0 - 0.25 * self.error_count)


@dataclass(frozen=True)
class FormatInfo:
    """Error correction level and mask pattern read from a 15-bit word."""

    ec_level: str
    mask_pattern: int
    error_count: int
    confidence: float


def _correct(word: int, length: int, generator: int) -> BCHResult:
    if bch_remainder(word, generator) == 0:
        return BCHResult(word, word, 0)

    for flips in range(1, MAX_CORRECTABLE_BITS + 1):
        for positions in combinations(range(length), flips):
            candidate = word
            for p in positions:
                candidate ^= 1 << p
            if bch_remainder(candidate, generator) == 0:
                return BCHResult(word, candidate, flips)

    return BCHResult(word, None, 0)


def decode_format_word(raw: int) -> BCHResult:
    """Correct a 15-bit format word as read from the matrix (still masked)."""
    result = _correct(raw ^ FORMAT_MASK, FORMAT_BITS, BCH_GENERATOR)
    return BCHResult(raw, result.corrected, result.error_count)


def decode_format_info(raw: int) -> Optional[FormatInfo]:
    """Decode a raw format word into level and mask; None if uncorrectable."""
    result = decode_format_word(raw)
    if not result.is_valid:
        return None
    data = result.corrected >> 10
    return FormatInfo(
        ec_level=EC_LEVEL_FROM_BITS[data >> 3],
        mask_pattern=data & 0b111,
        error_count=result.error_count,
        confidence=result.confidence,
    )


def decode_version_word(raw: int) -> BCHResult:
    """Correct an 18-bit version word."""
    return _correct(raw, VERSION_BITS, VERSION_GENERATOR)


def version_from_word(corrected: int) -> int:
    return corrected >> 12
