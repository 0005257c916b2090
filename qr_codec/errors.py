"""
Exception and failure types.

Encoding problems are raised. Decoding problems are returned: every decode
stage reports a DecodeFailure value instead of throwing, so callers always
get a result (with best-effort text where possible).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class DecodeStage(str, Enum):
    """Decode pipeline stages, in execution order."""

    EXTRACT_FORMAT = "ExtractFormat"
    EXTRACT_VERSION = "ExtractVersion"
    REMOVE_MASK = "RemoveMask"
    READ_MODULES = "ReadModules"
    DEINTERLEAVE = "Deinterleave"
    CORRECT_ERRORS = "CorrectErrors"
    EXTRACT_DATA = "ExtractData"
    DONE = "Done"

    def __str__(self) -> str:
        return self.value


#==============================================================================
# ENCODE-SIDE EXCEPTIONS
#==============================================================================

class EncodeError(ValueError):
    """Base class for input that cannot be encoded."""


class DataTooLongError(EncodeError):
    """The payload does not fit in the requested (or largest) version."""


class UnsupportedCharacterError(EncodeError):
    """A forced mode cannot represent a character of the payload."""


#==============================================================================
# BITSTREAM READING ERRORS (internal to decode)
#==============================================================================

class BitstreamError(Exception):
    """Raised while reading segments; converted to DecodeFailure at the boundary."""

    def __init__(self, stage: str, message: str):
        super().__init__(message)
        self.stage = stage
        self.message = message


class InsufficientBitsError(BitstreamError):
    """A declared field needs more bits than the stream has left."""

    def __init__(self, field_name: str, expected: int, available: int,
                 stage: str = DecodeStage.EXTRACT_DATA):
        super().__init__(stage, f"{field_name}: expected {expected} bits, {available} available")
        self.field_name = field_name
        self.expected = expected
        self.available = available


class InvalidSegmentError(BitstreamError):
    """A segment header or payload value is not valid for its mode."""


#==============================================================================
# RETURNED FAILURE VALUES
#==============================================================================

@dataclass(frozen=True)
class CorrectionFailure:
    """Why a single Reed-Solomon block could not be corrected."""

    EXCEEDS_CAPACITY = 'exceeds_capacity'
    LOCATOR_MISMATCH = 'locator_mismatch'
    DERIVATIVE_ZERO = 'derivative_zero'
    VERIFICATION_FAILED = 'verification_failed'

    reason: str
    detected: int = 0
    max_correctable: int = 0

    def __str__(self) -> str:
        return f"{self.reason} (detected {self.detected}, max {self.max_correctable})"


@dataclass(frozen=True)
class DecodeFailure:
    """A decode stage that could not complete; carried on the DecodeResult."""

    stage: str
    message: str
    detected: Optional[int] = None
    max_correctable: Optional[int] = None
    expected_bits: Optional[int] = None
    available_bits: Optional[int] = None

    def __str__(self) -> str:
        return f"[{self.stage}] {self.message}"
