"""Encoder and decoder parameters."""

from dataclasses import dataclass
from typing import Optional

from .bitstream import DATA_MODES
from .tables import EC_LEVELS, MAX_VERSION, MIN_VERSION


@dataclass(frozen=True)
class EncoderConfig:
    """
    Encode parameters.

    Any field left as None is chosen automatically: the smallest version
    that fits, the mask with the lowest penalty score, and the most compact
    single mode for the text.
    """

    ec_level: str = 'M'
    version: Optional[int] = None
    mask_pattern: Optional[int] = None
    mode: Optional[int] = None

    def validate(self) -> None:
        if self.ec_level not in EC_LEVELS:
            raise ValueError(f"Invalid error correction level: {self.ec_level}")
        if self.version is not None and not (MIN_VERSION <= self.version <= MAX_VERSION):
            raise ValueError(f"version must be within [{MIN_VERSION}, {MAX_VERSION}]")
        if self.mask_pattern is not None and not (0 <= self.mask_pattern <= 7):
            raise ValueError("mask_pattern must be within [0, 7]")
        if self.mode is not None and self.mode not in DATA_MODES:
            raise ValueError(f"Unsupported mode indicator: {self.mode:#06b}")


@dataclass(frozen=True)
class DecoderConfig:
    """Unknown-module budgets for the metadata regions."""

    max_format_unknowns: int = 8  # of 15 modules per location
    max_version_unknowns: int = 6  # of 18 modules per location

    def validate(self) -> None:
        if not (0 <= self.max_format_unknowns <= 15):
            raise ValueError("max_format_unknowns must be within [0, 15]")
        if not (0 <= self.max_version_unknowns <= 18):
            raise ValueError("max_version_unknowns must be within [0, 18]")
