"""
The zigzag traversal of data modules.

The same coordinate sequence is used to write codeword bits when encoding
and to read them back when decoding.
"""

from functools import lru_cache
from typing import List, Optional, Sequence, Tuple

from .matrix import ModuleRole, Position, QRMatrix


def zigzag_positions(roles: Sequence[Sequence[ModuleRole]]) -> List[Position]:
    """
    Data module coordinates in placement order.

    Column pairs are visited right to left, skipping the vertical timing
    column. The direction alternates per pair, starting upward from the
    bottom-right corner; within a row the right column comes first.
    """
    size = len(roles)
    positions = []
    col = size - 1
    upward = True

    while col > 0:
        if col == 6:
            col -= 1

        rows = range(size - 1, -1, -1) if upward else range(size)
        for row in rows:
            for c in (col, col - 1):
                if roles[row][c] == ModuleRole.DATA:
                    positions.append((row, c))

        col -= 2
        upward = not upward

    return positions


@lru_cache(maxsize=None)
def data_positions(version: int) -> Tuple[Position, ...]:
    """Cached zigzag_positions for the standard layout of a version."""
    return tuple(zigzag_positions(QRMatrix(version).roles))


def place_bits(matrix: List[List[Optional[int]]], positions: Sequence[Position],
               bits: List[int]) -> int:
    """
    Write bits along positions; cells beyond the end of bits become 0.

    Returns the number of bits written.
    """
    for i, (row, col) in enumerate(positions):
        matrix[row][col] = bits[i] if i < len(bits) else 0
    return min(len(bits), len(positions))


def read_bits(matrix: List[List[int]], positions: Sequence[Position]) -> List[int]:
    return [matrix[row][col] for row, col in positions]
