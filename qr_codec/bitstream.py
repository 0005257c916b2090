"""
Segment encoding and decoding for the QR data bitstream.

A symbol's data codewords hold a sequence of segments, each being

    mode indicator (4 bits) + character count + payload

followed by a terminator of up to four zero bits, zero bits up to the next
byte boundary, and alternating pad bytes 0xEC 0x11 until capacity.

References:
- https://www.thonky.com/qr-code-tutorial/data-encoding
- ISO/IEC 18004 Section 7.4
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .errors import (DataTooLongError, DecodeFailure, DecodeStage,
                     InsufficientBitsError, InvalidSegmentError,
                     UnsupportedCharacterError)
from .tables import validate_version


#==============================================================================
# DATA ENCODING MODES
#==============================================================================

# Mode indicators (4-bit values)
MODE_NUMERIC = 0b0001
MODE_ALPHANUMERIC = 0b0010
MODE_BYTE = 0b0100
MODE_KANJI = 0b1000
MODE_ECI = 0b0111
MODE_TERMINATOR = 0b0000

# Modes this codec can encode and decode
DATA_MODES = (MODE_NUMERIC, MODE_ALPHANUMERIC, MODE_BYTE)

MODE_NAMES = {
    MODE_NUMERIC: 'numeric',
    MODE_ALPHANUMERIC: 'alphanumeric',
    MODE_BYTE: 'byte',
    MODE_KANJI: 'kanji',
    MODE_ECI: 'eci',
    MODE_TERMINATOR: 'terminator',
}

# Alphanumeric character mapping
ALPHANUMERIC_CHARS = '0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ $%*+-./:'
ALPHANUMERIC_TABLE = {c: i for i, c in enumerate(ALPHANUMERIC_CHARS)}

PAD_BYTES = (0xEC, 0x11)

EXTRACT_STAGE = DecodeStage.EXTRACT_DATA


def get_character_count_bits(version: int, mode: int) -> int:
    """Get the number of bits for the character count indicator."""
    validate_version(version)
    if version <= 9:
        table = {MODE_NUMERIC: 10, MODE_ALPHANUMERIC: 9,
                 MODE_BYTE: 8, MODE_KANJI: 8}
    elif version <= 26:
        table = {MODE_NUMERIC: 12, MODE_ALPHANUMERIC: 11,
                 MODE_BYTE: 16, MODE_KANJI: 10}
    else:
        table = {MODE_NUMERIC: 14, MODE_ALPHANUMERIC: 13,
                 MODE_BYTE: 16, MODE_KANJI: 12}
    if mode not in table:
        raise ValueError(f"Mode {mode:#06b} has no character count indicator")
    return table[mode]


def detect_mode(data: str) -> int:
    """Detect the most efficient encoding mode for the data."""
    if all(c in '0123456789' for c in data):
        return MODE_NUMERIC
    if all(c in ALPHANUMERIC_TABLE for c in data):
        return MODE_ALPHANUMERIC
    return MODE_BYTE


def int_to_bits(value: int, length: int) -> List[int]:
    """Convert integer to list of bits with specified length."""
    return [(value >> (length - 1 - i)) & 1 for i in range(length)]


def bits_to_int(bits: List[int]) -> int:
    value = 0
    for bit in bits:
        value = (value << 1) | bit
    return value


def bits_to_bytes(bits: List[int]) -> List[int]:
    """Convert list of bits to list of bytes, zero-filling the last byte."""
    bits = list(bits) + [0] * (-len(bits) % 8)
    return [bits_to_int(bits[i:i + 8]) for i in range(0, len(bits), 8)]


def bytes_to_bits(codewords: List[int]) -> List[int]:
    bits = []
    for byte in codewords:
        bits.extend(int_to_bits(byte, 8))
    return bits


#==============================================================================
# SEGMENT ENCODING
#==============================================================================

def encode_numeric(data: str) -> List[int]:
    """Encode numeric data: 3 digits per 10 bits, remainder in 7 or 4 bits."""
    bits = []
    for i in range(0, len(data), 3):
        group = data[i:i + 3]
        bits.extend(int_to_bits(int(group), {3: 10, 2: 7, 1: 4}[len(group)]))
    return bits


def encode_alphanumeric(data: str) -> List[int]:
    """Encode alphanumeric data: pairs as 45*first+second in 11 bits, odd char in 6."""
    bits = []
    i = 0
    while i < len(data):
        if i + 2 <= len(data):
            v1 = ALPHANUMERIC_TABLE[data[i]]
            v2 = ALPHANUMERIC_TABLE[data[i + 1]]
            bits.extend(int_to_bits(45 * v1 + v2, 11))
            i += 2
        else:
            bits.extend(int_to_bits(ALPHANUMERIC_TABLE[data[i]], 6))
            i += 1
    return bits


def encode_byte(data: str) -> List[int]:
    """Encode byte data as UTF-8."""
    return bytes_to_bits(list(data.encode('utf-8')))


_ENCODERS: Dict[int, Callable[[str], List[int]]] = {
    MODE_NUMERIC: encode_numeric,
    MODE_ALPHANUMERIC: encode_alphanumeric,
    MODE_BYTE: encode_byte,
}


@dataclass
class Segment:
    """
    One mode-homogeneous run of the payload.

    payload_bits excludes the mode indicator and character count, whose
    width depends on the version the segment ends up in.
    """

    mode: int
    character_count: int
    payload_bits: List[int]
    text: str
    start_bit: int = 0
    end_bit: int = 0

    @property
    def mode_name(self) -> str:
        return MODE_NAMES.get(self.mode, f'{self.mode:04b}')

    def bit_length(self, version: int) -> int:
        return 4 + get_character_count_bits(version, self.mode) + len(self.payload_bits)

    def to_bits(self, version: int) -> List[int]:
        count_bits = get_character_count_bits(version, self.mode)
        if self.character_count >= 1 << count_bits:
            raise DataTooLongError(
                f"{self.character_count} characters do not fit a {count_bits}-bit "
                f"count indicator at version {version}")
        return (int_to_bits(self.mode, 4)
                + int_to_bits(self.character_count, count_bits)
                + self.payload_bits)


def make_segment(text: str, mode: Optional[int] = None) -> Segment:
    """
    Build a segment for text, detecting the mode when none is given.

    Raises UnsupportedCharacterError when a forced mode cannot hold the text.
    """
    if mode is None:
        mode = detect_mode(text)
    if mode not in _ENCODERS:
        raise ValueError(f"Unsupported mode indicator: {mode:#06b}")

    if mode == MODE_NUMERIC:
        bad = [c for c in text if c not in '0123456789']
    elif mode == MODE_ALPHANUMERIC:
        bad = [c for c in text if c not in ALPHANUMERIC_TABLE]
    else:
        bad = []
    if bad:
        raise UnsupportedCharacterError(
            f"{MODE_NAMES[mode]} mode cannot encode {bad[0]!r}")

    count = len(text.encode('utf-8')) if mode == MODE_BYTE else len(text)
    return Segment(mode, count, _ENCODERS[mode](text), text)


def encode_data(data: str, version: int, mode: int = None) -> List[int]:
    """
    Encode data for QR code.

    Returns: List of bits including mode indicator and character count.
    """
    return make_segment(data, mode).to_bits(version)


def encode_segments(segments: List[Segment], version: int) -> List[int]:
    bits = []
    for segment in segments:
        bits.extend(segment.to_bits(version))
    return bits


def pad_codewords(data_bits: List[int], capacity_bytes: int) -> List[int]:
    """
    Add terminator, byte alignment and pad bytes to fill the capacity.

    Raises DataTooLongError when the bits do not fit.
    """
    capacity_bits = capacity_bytes * 8
    if len(data_bits) > capacity_bits:
        raise DataTooLongError(
            f"{len(data_bits)} data bits exceed the capacity of {capacity_bits}")
    bits = list(data_bits)

    # Add terminator (up to 4 bits)
    bits.extend([0] * min(4, capacity_bits - len(bits)))

    codewords = bits_to_bytes(bits)

    i = 0
    while len(codewords) < capacity_bytes:
        codewords.append(PAD_BYTES[i % 2])
        i += 1

    return codewords


#==============================================================================
# BIT READER
#==============================================================================

class BitReader:
    """
    Sequential reader over a bit list.

    The cursor is a plain integer: mark() returns it and reset() restores
    it, which is all the backtracking the segment loop needs.
    """

    def __init__(self, bits: List[int]):
        self.bits = list(bits)
        self.position = 0

    @classmethod
    def from_codewords(cls, codewords: List[int]) -> 'BitReader':
        return cls(bytes_to_bits(codewords))

    def __len__(self) -> int:
        return len(self.bits)

    @property
    def remaining(self) -> int:
        return len(self.bits) - self.position

    def read(self, count: int, field_name: str = 'bits') -> int:
        if count > self.remaining:
            raise InsufficientBitsError(field_name, count, self.remaining)
        value = bits_to_int(self.bits[self.position:self.position + count])
        self.position += count
        return value

    def mark(self) -> int:
        return self.position

    def reset(self, mark: int):
        self.position = mark


#==============================================================================
# SEGMENT DECODING
#==============================================================================

def decode_numeric(reader: BitReader, count: int) -> str:
    digits = []
    remaining = count
    while remaining > 0:
        group = min(3, remaining)
        width, limit = {3: (10, 999), 2: (7, 99), 1: (4, 9)}[group]
        value = reader.read(width, 'numeric group')
        if value > limit:
            raise InvalidSegmentError(
                EXTRACT_STAGE, f"Numeric group value {value} exceeds {limit}")
        digits.append(str(value).zfill(group))
        remaining -= group
    return ''.join(digits)


def decode_alphanumeric(reader: BitReader, count: int) -> str:
    chars = []
    remaining = count
    while remaining > 0:
        if remaining >= 2:
            value = reader.read(11, 'alphanumeric pair')
            first, second = divmod(value, 45)
            if first >= 45:
                raise InvalidSegmentError(
                    EXTRACT_STAGE, f"Alphanumeric pair value {value} out of range")
            chars.append(ALPHANUMERIC_CHARS[first] + ALPHANUMERIC_CHARS[second])
            remaining -= 2
        else:
            value = reader.read(6, 'alphanumeric character')
            if value >= 45:
                raise InvalidSegmentError(
                    EXTRACT_STAGE, f"Alphanumeric value {value} out of range")
            chars.append(ALPHANUMERIC_CHARS[value])
            remaining -= 1
    return ''.join(chars)


def decode_byte(reader: BitReader, count: int) -> str:
    """UTF-8 when valid, otherwise one character per byte (ISO-8859-1)."""
    raw = bytes(reader.read(8, 'byte') for _ in range(count))
    try:
        return raw.decode('utf-8')
    except UnicodeDecodeError:
        return raw.decode('latin-1')


_DECODERS: Dict[int, Callable[[BitReader, int], str]] = {
    MODE_NUMERIC: decode_numeric,
    MODE_ALPHANUMERIC: decode_alphanumeric,
    MODE_BYTE: decode_byte,
}


@dataclass
class BitstreamResult:
    """Decoded segments plus how well the tail matched terminator and padding."""

    segments: List[Segment]
    total_bits: int
    data_end_bit: int
    terminator_bits: int = 0
    alignment_bits: int = 0
    pad_bytes: List[int] = field(default_factory=list)
    terminator_ok: bool = False
    padding_ok: bool = False
    accounted_bits: int = 0
    failure: Optional[DecodeFailure] = None

    @property
    def text(self) -> str:
        return ''.join(segment.text for segment in self.segments)

    @property
    def confidence(self) -> float:
        accounted = self.accounted_bits / self.total_bits if self.total_bits else 0.0
        return (0.4 * accounted
                + (0.3 if self.terminator_ok else 0.0)
                + (0.3 if self.padding_ok else 0.0))


def decode_bitstream(codewords: List[int], version: int) -> BitstreamResult:
    """
    Read every segment from the data codewords, then analyse the tail.

    Extraction stops at a terminator, when fewer than four bits remain, or
    at the first malformed segment; in the last case the failure is
    recorded and the segments read so far are kept.
    """
    reader = BitReader.from_codewords(codewords)
    segments = []
    failure = None

    while reader.remaining >= 4:
        start = reader.mark()
        try:
            mode = reader.read(4, 'mode indicator')
            if mode == MODE_TERMINATOR:
                reader.reset(start)
                break
            if mode in (MODE_KANJI, MODE_ECI):
                raise InvalidSegmentError(
                    EXTRACT_STAGE, f"{MODE_NAMES[mode]} segments are not supported")
            if mode not in _DECODERS:
                raise InvalidSegmentError(
                    EXTRACT_STAGE, f"Unknown mode indicator {mode:04b}")

            count = reader.read(get_character_count_bits(version, mode), 'character count')
            payload_start = reader.mark()
            text = _DECODERS[mode](reader, count)
        except InsufficientBitsError as e:
            failure = DecodeFailure(EXTRACT_STAGE, e.message,
                                    expected_bits=e.expected, available_bits=e.available)
            reader.reset(start)
            break
        except InvalidSegmentError as e:
            failure = DecodeFailure(EXTRACT_STAGE, e.message)
            reader.reset(start)
            break

        segments.append(Segment(mode, count, reader.bits[payload_start:reader.position],
                                text, start, reader.position))

    result = BitstreamResult(segments, len(reader), reader.position, failure=failure)
    _analyse_padding(reader, result)
    return result


def _analyse_padding(reader: BitReader, result: BitstreamResult):
    bits = reader.bits
    total = len(bits)
    position = result.data_end_bit

    expected_terminator = min(4, total - position)
    while (result.terminator_bits < expected_terminator
           and bits[position + result.terminator_bits] == 0):
        result.terminator_bits += 1
    result.terminator_ok = result.terminator_bits == expected_terminator
    position += result.terminator_bits

    result.alignment_bits = min(-position % 8, total - position)
    alignment_ok = not any(bits[position:position + result.alignment_bits])
    position += result.alignment_bits

    reader.reset(position)
    while reader.remaining >= 8:
        result.pad_bytes.append(reader.read(8, 'pad byte'))

    conforming = 0
    for i, byte in enumerate(result.pad_bytes):
        if byte != PAD_BYTES[i % 2]:
            break
        conforming += 1
    result.padding_ok = alignment_ok and conforming == len(result.pad_bytes)

    result.accounted_bits = (result.data_end_bit + result.terminator_bits
                             + (result.alignment_bits if alignment_ok else 0)
                             + 8 * conforming)
