"""
QR Code decoding pipeline.

Input is a square tri-state matrix (1 dark, 0 light, None unknown) as
produced by an external detector. The stages run in order:

    ExtractFormat -> ExtractVersion -> RemoveMask -> ReadModules
        -> Deinterleave -> CorrectErrors -> ExtractData -> Done

Format and version failures end the decode. A Reed-Solomon failure does
not: data extraction still runs on the best codewords available and the
failure is reported next to the (possibly wrong) text.

References:
- ISO/IEC 18004 Section 12 (decoding procedure)
"""

import logging
from dataclasses import dataclass, field
from itertools import product
from typing import Dict, List, Optional, Sequence, Tuple

from .bch import (FormatInfo, decode_format_info, decode_version_word,
                  get_version_string, list_to_bits, version_from_word)
from .bitstream import BitstreamResult, bits_to_bytes, decode_bitstream
from .blocks import ECBlockPlan, deinterleave, get_block_plan
from .config import DecoderConfig
from .errors import DecodeFailure, DecodeStage
from .masking import remove_mask
from .matrix import Position, QRMatrix, format_positions, version_positions
from .reed_solomon import ErrorCorrectionResult, rs_decoder
from .tables import version_for_size
from .zigzag import data_positions, read_bits

logger = logging.getLogger(__name__)

Matrix = Sequence[Sequence[Optional[int]]]

# Confidence lost per unknown module in a version location
VERSION_UNKNOWN_PENALTY = 0.05


#==============================================================================
# FORMAT AND VERSION EXTRACTION
#==============================================================================

@dataclass
class FormatLocation:
    """One 15-bit format copy as read from the matrix."""

    raw_bits: int
    unknown_count: int
    info: Optional[FormatInfo] = None

    @property
    def confidence(self) -> float:
        return self.info.confidence if self.info else 0.0


@dataclass
class FormatExtraction:
    ec_level: str
    mask_pattern: int
    confidence: float
    source: int  # 1 or 2
    locations: Tuple[Optional[FormatLocation], Optional[FormatLocation]]


@dataclass
class VersionLocation:
    """One 18-bit version copy; version is None when it did not decode."""

    raw_bits: int
    unknown_count: int
    version: Optional[int] = None
    error_count: int = 0
    confidence: float = 0.0


@dataclass
class VersionExtraction:
    version: int
    confidence: float
    locations: Tuple[Optional[VersionLocation], Optional[VersionLocation]] = (None, None)


def _read_location(matrix: Matrix, positions: List[Position]) -> Tuple[List[int], List[int]]:
    """Bits at positions with unknowns read as 0, plus the indices that were unknown."""
    bits = []
    unknown = []
    for i, (row, col) in enumerate(positions):
        value = matrix[row][col]
        if value is None:
            unknown.append(i)
            value = 0
        bits.append(value)
    return bits, unknown


def extract_format(matrix: Matrix,
                   config: DecoderConfig = DecoderConfig()) -> Optional[FormatExtraction]:
    """
    Decode both format copies and keep the one with fewer bit errors.

    A copy with more than max_format_unknowns unknown modules is ignored.
    Returns None when neither copy decodes.
    """
    locations = []
    for positions in format_positions(len(matrix)):
        bits, unknown = _read_location(matrix, positions)
        if len(unknown) > config.max_format_unknowns:
            locations.append(None)
            continue
        raw = list_to_bits(bits)
        locations.append(FormatLocation(raw, len(unknown), decode_format_info(raw)))

    candidates = [(index + 1, loc) for index, loc in enumerate(locations)
                  if loc is not None and loc.info is not None]
    if not candidates:
        return None

    # Fewest corrected bits wins; min() keeps location 1 on ties
    source, best = min(candidates, key=lambda c: c[1].info.error_count)
    return FormatExtraction(best.info.ec_level, best.info.mask_pattern,
                            best.info.confidence, source, tuple(locations))


def _decode_version_location(bits: List[int], unknown: List[int]) -> VersionLocation:
    """
    Try every assignment of the unknown bits; keep the BCH decode with the
    fewest corrections whose result is the canonical word of a version.
    """
    raw = sum(bit << i for i, bit in enumerate(bits))
    location = VersionLocation(raw, len(unknown))
    best = None

    for assignment in product((0, 1), repeat=len(unknown)):
        word = raw
        for index, value in zip(unknown, assignment):
            word |= value << index
        result = decode_version_word(word)
        if not result.is_valid:
            continue
        version = version_from_word(result.corrected)
        if not 7 <= version <= 40 or get_version_string(version) != result.corrected:
            continue
        if best is None or result.error_count < best[1].error_count:
            best = (version, result)

    if best is not None:
        version, result = best
        location.version = version
        location.error_count = result.error_count
        location.confidence = max(0.0, result.confidence
                                  - VERSION_UNKNOWN_PENALTY * len(unknown))
    return location


def extract_version(matrix: Matrix,
                    config: DecoderConfig = DecoderConfig()) -> Optional[VersionExtraction]:
    """
    Decode the version copies of a version 7+ symbol.

    Agreeing copies reinforce each other; disagreeing copies defer to the
    more confident one (location 1 on ties). Returns None when neither
    copy decodes.
    """
    # LSB-first: bit i of the word sits at positions[i]
    locations = []
    for positions in version_positions(len(matrix)):
        bits, unknown = _read_location(matrix, positions)
        if len(unknown) > config.max_version_unknowns:
            locations.append(None)
            continue
        locations.append(_decode_version_location(bits, unknown))

    decoded = [loc for loc in locations if loc is not None and loc.version is not None]
    if not decoded:
        return None
    if len(decoded) == 1:
        return VersionExtraction(decoded[0].version, decoded[0].confidence, tuple(locations))

    first, second = decoded
    if first.version == second.version:
        confidence = min(1.0, (first.confidence + second.confidence) / 1.5)
        return VersionExtraction(first.version, confidence, tuple(locations))
    best = first if first.confidence >= second.confidence else second
    return VersionExtraction(best.version, best.confidence, tuple(locations))


#==============================================================================
# DECODE RESULT
#==============================================================================

@dataclass
class DecodeResult:
    """
    Everything the pipeline learned, stage by stage.

    text is best-effort: it may be present alongside a failure when error
    correction did not succeed. confidence is the product of the stage
    confidences, or 0.0 when the pipeline stopped before extracting data.
    """

    text: str = ''
    failure: Optional[DecodeFailure] = None
    stage: DecodeStage = DecodeStage.EXTRACT_FORMAT
    version: Optional[int] = None
    ec_level: Optional[str] = None
    mask_pattern: Optional[int] = None
    finder_centers: Optional[Sequence[Tuple[float, float]]] = None
    format: Optional[FormatExtraction] = None
    version_info: Optional[VersionExtraction] = None
    unknown_data_modules: int = 0
    codewords: List[int] = field(default_factory=list)
    blocks: List[List[int]] = field(default_factory=list)
    correction: Optional[ErrorCorrectionResult] = None
    bitstream: Optional[BitstreamResult] = None
    stage_confidences: Dict[DecodeStage, float] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.failure is None and self.stage == DecodeStage.DONE

    @property
    def confidence(self) -> float:
        if self.stage != DecodeStage.DONE:
            return 0.0
        total = 1.0
        for value in self.stage_confidences.values():
            total *= value
        return total

    @property
    def errors_corrected(self) -> int:
        return self.correction.total_errors if self.correction else 0


#==============================================================================
# DECODER
#==============================================================================

class QRDecoder:
    """Recovers text from a tri-state module matrix."""

    def __init__(self, config: Optional[DecoderConfig] = None):
        self.config = config or DecoderConfig()
        self.config.validate()

    def decode(self, matrix: Matrix,
               finder_centers: Optional[Sequence[Tuple[float, float]]] = None) -> DecodeResult:
        """
        Run every stage on matrix.

        finder_centers are the detector's finder pattern centres; they are
        carried on the result and not re-examined, since the version comes
        from the matrix size alone.
        """
        result = DecodeResult(finder_centers=finder_centers)

        size = len(matrix)
        if any(len(row) != size for row in matrix):
            return self._fail(result, DecodeStage.EXTRACT_FORMAT, "Matrix is not square")
        try:
            geometry_version = version_for_size(size)
        except ValueError as e:
            return self._fail(result, DecodeStage.EXTRACT_FORMAT, str(e))

        # ExtractFormat
        fmt = extract_format(matrix, self.config)
        if fmt is None:
            return self._fail(result, DecodeStage.EXTRACT_FORMAT,
                              "Format information unreadable at both locations")
        result.format = fmt
        result.ec_level = fmt.ec_level
        result.mask_pattern = fmt.mask_pattern
        result.stage_confidences[DecodeStage.EXTRACT_FORMAT] = fmt.confidence
        logger.debug("Format: level %s, mask %d (location %d, confidence %.2f)",
                     fmt.ec_level, fmt.mask_pattern, fmt.source, fmt.confidence)

        # ExtractVersion
        result.stage = DecodeStage.EXTRACT_VERSION
        if geometry_version < 7:
            version_info = VersionExtraction(geometry_version, 1.0)
        else:
            version_info = extract_version(matrix, self.config)
            if version_info is None:
                return self._fail(result, DecodeStage.EXTRACT_VERSION,
                                  "Version information unreadable at both locations")
            if version_info.version != geometry_version:
                return self._fail(result, DecodeStage.EXTRACT_VERSION,
                                  f"Version information says {version_info.version}, "
                                  f"symbol size says {geometry_version}")
        result.version_info = version_info
        result.version = version_info.version
        result.stage_confidences[DecodeStage.EXTRACT_VERSION] = version_info.confidence
        logger.debug("Version %d (confidence %.2f)", result.version, version_info.confidence)

        # RemoveMask
        result.stage = DecodeStage.REMOVE_MASK
        layout = QRMatrix(result.version)
        unmasked, unknown = remove_mask(matrix, layout.roles, fmt.mask_pattern)
        result.unknown_data_modules = unknown
        result.stage_confidences[DecodeStage.REMOVE_MASK] = \
            1.0 - unknown / layout.data_module_count
        logger.debug("Removed mask %d, %d unknown data modules", fmt.mask_pattern, unknown)

        # ReadModules
        result.stage = DecodeStage.READ_MODULES
        plan = get_block_plan(result.version, fmt.ec_level)
        bits = read_bits(unmasked, data_positions(result.version))
        usable = len(bits) - len(bits) % 8
        result.codewords = bits_to_bytes(bits[:min(usable, plan.total_codewords * 8)])
        logger.debug("Read %d codewords", len(result.codewords))

        # Deinterleave
        result.stage = DecodeStage.DEINTERLEAVE
        result.blocks = deinterleave(result.codewords, plan)
        if not self._blocks_complete(result.blocks, plan):
            return self._fail(result, DecodeStage.DEINTERLEAVE,
                              "Not enough codewords for the block structure",
                              expected_bits=plan.total_codewords * 8,
                              available_bits=len(result.codewords) * 8)

        # CorrectErrors
        result.stage = DecodeStage.CORRECT_ERRORS
        correction = rs_decoder.correct_blocks(result.blocks, plan.ec_codewords_per_block)
        result.correction = correction
        result.stage_confidences[DecodeStage.CORRECT_ERRORS] = correction.confidence
        if correction.is_recoverable:
            logger.debug("Corrected %d codeword error(s) in %d block(s)",
                         correction.total_errors, len(correction.blocks))
        else:
            failed = correction.first_failure
            result.failure = DecodeFailure(
                DecodeStage.CORRECT_ERRORS,
                f"Reed-Solomon correction failed: {failed}",
                detected=failed.detected,
                max_correctable=failed.max_correctable,
            )
            logger.warning("%s; extracting data anyway", result.failure)

        # ExtractData
        result.stage = DecodeStage.EXTRACT_DATA
        bitstream = decode_bitstream(correction.data_codewords, result.version)
        result.bitstream = bitstream
        result.text = bitstream.text
        result.stage_confidences[DecodeStage.EXTRACT_DATA] = bitstream.confidence
        if bitstream.failure is not None and result.failure is None:
            result.failure = bitstream.failure
            logger.warning("%s", bitstream.failure)

        result.stage = DecodeStage.DONE
        logger.debug("Decoded %d segment(s), confidence %.3f",
                     len(bitstream.segments), result.confidence)
        return result

    @staticmethod
    def _blocks_complete(blocks: List[List[int]], plan: ECBlockPlan) -> bool:
        expected = [count + plan.ec_codewords_per_block for count in plan.block_data_counts]
        return [len(block) for block in blocks] == expected

    @staticmethod
    def _fail(result: DecodeResult, stage: DecodeStage, message: str,
              **details) -> DecodeResult:
        result.stage = stage
        result.failure = DecodeFailure(stage, message, **details)
        logger.warning("%s", result.failure)
        return result


def decode(matrix: Matrix,
           finder_centers: Optional[Sequence[Tuple[float, float]]] = None) -> DecodeResult:
    """Shortcut for QRDecoder().decode(matrix)."""
    return QRDecoder().decode(matrix, finder_centers)
