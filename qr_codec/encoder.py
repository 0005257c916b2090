"""
QR Code encoding pipeline.

    text -> segments -> padded data codewords -> RS blocks -> interleave
         -> matrix placement -> mask -> format/version information
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .bitstream import (Segment, bytes_to_bits, encode_segments,
                        make_segment, pad_codewords)
from .blocks import ECBlockPlan, get_block_plan, interleave, split_data_blocks
from .config import EncoderConfig
from .errors import DataTooLongError
from .masking import apply_mask, calculate_penalty, choose_best_mask
from .matrix import QRMatrix, matrix_to_text, place_format_info, place_version_info
from .reed_solomon import rs_encoder
from .tables import MAX_VERSION, MIN_VERSION, data_codeword_count, remainder_bits
from .zigzag import data_positions, place_bits

logger = logging.getLogger(__name__)


def segments_fit(segments: List[Segment], version: int, ec_level: str) -> bool:
    """True when the segment headers and payloads fit the data capacity."""
    try:
        bits = encode_segments(segments, version)
    except DataTooLongError:
        # A character count overflowed its indicator at this version
        return False
    return len(bits) <= data_codeword_count(version, ec_level) * 8


def minimum_version(segments: List[Segment], ec_level: str) -> int:
    """Smallest version whose data capacity holds every segment."""
    for version in range(MIN_VERSION, MAX_VERSION + 1):
        if segments_fit(segments, version, ec_level):
            return version
    raise DataTooLongError(f"Data too long for any version at EC level {ec_level}")


@dataclass
class EncodedSymbol:
    """A finished symbol plus the parameters needed to render or inspect it."""

    matrix: List[List[int]]
    version: int
    ec_level: str
    mask_pattern: int
    penalty: int
    segments: List[Segment]
    plan: ECBlockPlan
    data_codewords: List[int] = field(default_factory=list)
    codewords: List[int] = field(default_factory=list)  # interleaved, data + EC

    @property
    def size(self) -> int:
        return len(self.matrix)

    def to_string(self, border: int = 4) -> str:
        return matrix_to_text(self.matrix, border)


class QREncoder:
    """Complete QR code encoder."""

    def __init__(self, config: Optional[EncoderConfig] = None):
        self.config = config or EncoderConfig()
        self.config.validate()

    def encode(self, text: str) -> EncodedSymbol:
        """
        Encode text as a single segment.

        Raises:
            UnsupportedCharacterError: the configured mode cannot hold the text
            DataTooLongError: the text does not fit the (chosen) version
        """
        return self.encode_segments([make_segment(text, self.config.mode)])

    def encode_segments(self, segments: List[Segment]) -> EncodedSymbol:
        """Encode an explicit sequence of segments."""
        ec_level = self.config.ec_level

        # Step 1: Determine version
        version = self.config.version
        if version is None:
            version = minimum_version(segments, ec_level)
        elif not segments_fit(segments, version, ec_level):
            raise DataTooLongError(f"Data too long for version {version}-{ec_level}")

        logger.info("Encoding version %d-%s, %s", version, ec_level,
                    "+".join(s.mode_name for s in segments))

        # Step 2: Encode data, add terminator and padding
        plan = get_block_plan(version, ec_level)
        data_codewords = pad_codewords(encode_segments(segments, version), plan.data_codewords)
        logger.debug("Data codewords (%d): %s", len(data_codewords), data_codewords[:10])

        # Step 3: Generate error correction per block and interleave
        data_blocks = split_data_blocks(data_codewords, plan)
        ec_blocks = [rs_encoder.encode(block, plan.ec_codewords_per_block)
                     for block in data_blocks]
        codewords = interleave(data_blocks, ec_blocks)
        logger.debug("%d block(s), %d EC codewords each, %d codewords total",
                     plan.num_blocks, plan.ec_codewords_per_block, len(codewords))

        # Step 4: Place data
        qr = QRMatrix(version)
        matrix = qr.copy_modules()
        bits = bytes_to_bits(codewords) + [0] * remainder_bits(version)
        placed = place_bits(matrix, data_positions(version), bits)
        logger.debug("Placed %d bits in %dx%d matrix", placed, qr.size, qr.size)

        # Step 5: Mask
        mask = self.config.mask_pattern
        if mask is None:
            mask, penalty = choose_best_mask(matrix, qr.roles, ec_level)
            final = apply_mask(matrix, qr.roles, mask)
            place_format_info(final, ec_level, mask)
        else:
            final = apply_mask(matrix, qr.roles, mask)
            place_format_info(final, ec_level, mask)
            penalty = calculate_penalty(final)

        # Step 6: Version information
        place_version_info(final, version)
        logger.info("Applied mask pattern %d (penalty: %d)", mask, penalty)

        return EncodedSymbol(
            matrix=final,
            version=version,
            ec_level=ec_level,
            mask_pattern=mask,
            penalty=penalty,
            segments=segments,
            plan=plan,
            data_codewords=data_codewords,
            codewords=codewords,
        )


def encode(text: str, ec_level: str = 'M', version: Optional[int] = None,
           mask_pattern: Optional[int] = None, mode: Optional[int] = None) -> EncodedSymbol:
    """Shortcut for QREncoder(EncoderConfig(...)).encode(text)."""
    config = EncoderConfig(ec_level=ec_level, version=version,
                           mask_pattern=mask_pattern, mode=mode)
    return QREncoder(config).encode(text)
