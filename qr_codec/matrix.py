"""
QR Code matrix construction: function patterns and reserved areas.

Placement order matters. Each step writes only to cells that are still
unset, except the dark module, which always overwrites:

    finders -> separators -> timing -> alignment -> format -> version -> dark

Every cell left over after these steps is a data module.

References:
- https://www.thonky.com/qr-code-tutorial/module-placement-matrix
- https://www.thonky.com/qr-code-tutorial/format-version-information
"""

from enum import Enum
from typing import List, Optional, Tuple

from .bch import (FORMAT_BITS, VERSION_BITS, bits_to_list, get_format_string,
                  get_version_string)
from .tables import ALIGNMENT_POSITIONS, symbol_size, validate_version

Position = Tuple[int, int]  # (row, col)


class ModuleRole(str, Enum):
    FINDER = 'finder'
    SEPARATOR = 'separator'
    TIMING = 'timing'
    ALIGNMENT = 'alignment'
    FORMAT = 'format'
    VERSION = 'version'
    DARK = 'dark'
    DATA = 'data'


#==============================================================================
# FORMAT AND VERSION INFORMATION POSITIONS
#==============================================================================

def format_positions(size: int) -> Tuple[List[Position], List[Position]]:
    """
    Cells of the two 15-bit format copies, most significant bit first.

    Copy 1 wraps around the top-left finder (skipping the timing cells);
    copy 2 is split between the bottom-left and top-right finders.
    """
    first = ([(8, col) for col in range(6)]
             + [(8, 7), (8, 8), (7, 8)]
             + [(row, 8) for row in range(5, -1, -1)])
    second = ([(size - 1 - i, 8) for i in range(7)]
              + [(8, size - 8 + i) for i in range(8)])
    return first, second


def version_positions(size: int) -> Tuple[List[Position], List[Position]]:
    """
    Cells of the two 18-bit version copies, least significant bit first.

    Bit i sits at row size-11+i%3, col i//3 in the bottom-left block and
    at the transposed cell in the top-right block.
    """
    bottom_left = [(size - 11 + i % 3, i // 3) for i in range(VERSION_BITS)]
    top_right = [(col, row) for row, col in bottom_left]
    return bottom_left, top_right


#==============================================================================
# QR CODE MATRIX CONSTRUCTION
#==============================================================================

class QRMatrix:
    """
    Module values and roles for one version.

    modules[row][col] is None (unset), 0 (light) or 1 (dark);
    roles[row][col] is the ModuleRole of the cell.
    """

    def __init__(self, version: int):
        validate_version(version)
        self.version = version
        self.size = symbol_size(version)

        self.modules: List[List[Optional[int]]] = [[None] * self.size for _ in range(self.size)]
        self.roles: List[List[Optional[ModuleRole]]] = [[None] * self.size for _ in range(self.size)]

        self._place_function_patterns()

    def _place_function_patterns(self):
        """Place all function patterns."""
        self._place_finder_patterns()
        self._place_separators()
        self._place_timing_patterns()
        self._place_alignment_patterns()
        self._reserve_format_area()
        if self.version >= 7:
            self._reserve_version_area()
        self._place_dark_module()

        for row in range(self.size):
            for col in range(self.size):
                if self.roles[row][col] is None:
                    self.roles[row][col] = ModuleRole.DATA

    def _set(self, row: int, col: int, value: int, role: ModuleRole):
        """Write a function module unless the cell is already taken."""
        if 0 <= row < self.size and 0 <= col < self.size and self.roles[row][col] is None:
            self.modules[row][col] = value
            self.roles[row][col] = role

    def _place_finder_patterns(self):
        """Place the three finder patterns."""
        corners = [
            (0, 0),                 # Top-left
            (0, self.size - 7),     # Top-right
            (self.size - 7, 0),     # Bottom-left
        ]
        for top, left in corners:
            for dy in range(7):
                for dx in range(7):
                    ring = max(abs(dy - 3), abs(dx - 3))
                    # Dark outer ring and 3x3 centre, light ring between
                    value = 0 if ring == 2 else 1
                    self._set(top + dy, left + dx, value, ModuleRole.FINDER)

    def _place_separators(self):
        """Place light separators around finder patterns."""
        last = self.size - 1
        for i in range(8):
            # Top-left
            self._set(7, i, 0, ModuleRole.SEPARATOR)
            self._set(i, 7, 0, ModuleRole.SEPARATOR)
            # Top-right
            self._set(7, last - i, 0, ModuleRole.SEPARATOR)
            self._set(i, self.size - 8, 0, ModuleRole.SEPARATOR)
            # Bottom-left
            self._set(self.size - 8, i, 0, ModuleRole.SEPARATOR)
            self._set(last - i, 7, 0, ModuleRole.SEPARATOR)

    def _place_timing_patterns(self):
        """Place timing patterns (row 6 and column 6); finder cells are kept."""
        for i in range(self.size):
            value = (i + 1) % 2
            self._set(6, i, value, ModuleRole.TIMING)
            self._set(i, 6, value, ModuleRole.TIMING)

    def _place_alignment_patterns(self):
        """Place alignment patterns for version 2+."""
        positions = ALIGNMENT_POSITIONS[self.version]
        for row in positions:
            for col in positions:
                if self._overlaps_finder(row, col):
                    continue
                self._place_alignment_pattern(row, col)

    def _overlaps_finder(self, row: int, col: int) -> bool:
        """Check if alignment pattern would overlap finder patterns."""
        if row <= 8 and col <= 8:
            return True
        if row <= 8 and col >= self.size - 9:
            return True
        if row >= self.size - 9 and col <= 8:
            return True
        return False

    def _place_alignment_pattern(self, row: int, col: int):
        """Place a single alignment pattern centred at (row, col)."""
        for dy in range(-2, 3):
            for dx in range(-2, 3):
                value = 1 if max(abs(dy), abs(dx)) != 1 else 0
                self._set(row + dy, col + dx, value, ModuleRole.ALIGNMENT)

    def _reserve_format_area(self):
        """Reserve both format copies; the values are written after masking."""
        first, second = format_positions(self.size)
        for row, col in first + second:
            self._set(row, col, 0, ModuleRole.FORMAT)

    def _reserve_version_area(self):
        """Reserve space for version information (version 7+)."""
        bottom_left, top_right = version_positions(self.size)
        for row, col in bottom_left + top_right:
            self._set(row, col, 0, ModuleRole.VERSION)

    def _place_dark_module(self):
        """The dark module at (4 * version + 9, 8) always wins."""
        row, col = 4 * self.version + 9, 8
        self.modules[row][col] = 1
        self.roles[row][col] = ModuleRole.DARK

    @property
    def data_module_count(self) -> int:
        return sum(role == ModuleRole.DATA for line in self.roles for role in line)

    def copy_modules(self) -> List[List[Optional[int]]]:
        return [list(row) for row in self.modules]


#==============================================================================
# WRITING FORMAT AND VERSION INFORMATION
#==============================================================================

def place_format_info(matrix: List[List[int]], ec_level: str, mask_pattern: int):
    """Write both copies of the masked format word into the matrix in place."""
    size = len(matrix)
    bits = bits_to_list(get_format_string(ec_level, mask_pattern), FORMAT_BITS)
    for positions in format_positions(size):
        for bit, (row, col) in zip(bits, positions):
            matrix[row][col] = bit


def place_version_info(matrix: List[List[int]], version: int):
    """Write both copies of the version word (versions 7+ only)."""
    if version < 7:
        return
    word = get_version_string(version)
    for positions in version_positions(len(matrix)):
        for i, (row, col) in enumerate(positions):
            matrix[row][col] = (word >> i) & 1


def matrix_to_text(matrix: List[List[Optional[int]]], border: int = 4) -> str:
    """Convert matrix to string with quiet zone border."""
    size = len(matrix)
    blank = "  " * (size + 2 * border)
    lines = [blank] * border

    for row in matrix:
        line = "  " * border  # Left border
        for cell in row:
            if cell == 1:
                line += "██"
            elif cell is None:
                line += "??"
            else:
                line += "  "
        line += "  " * border  # Right border
        lines.append(line)

    lines.extend([blank] * border)
    return "\n".join(lines)
