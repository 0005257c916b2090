"""
Data masking and mask selection.

A mask flips every data module whose (row, col) satisfies its predicate.
XOR is self-inverse, so the same operation applies and removes a mask.

References:
- https://www.thonky.com/qr-code-tutorial/data-masking
- ISO/IEC 18004 Section 7.8
"""

import logging
from typing import Callable, List, Optional, Sequence, Tuple

from .matrix import ModuleRole, place_format_info

logger = logging.getLogger(__name__)

MASK_PATTERNS: List[Callable[[int, int], bool]] = [
    lambda r, c: (r + c) % 2 == 0,
    lambda r, c: r % 2 == 0,
    lambda r, c: c % 3 == 0,
    lambda r, c: (r + c) % 3 == 0,
    lambda r, c: (r // 2 + c // 3) % 2 == 0,
    lambda r, c: (r * c) % 2 + (r * c) % 3 == 0,
    lambda r, c: ((r * c) % 2 + (r * c) % 3) % 2 == 0,
    lambda r, c: ((r + c) % 2 + (r * c) % 3) % 2 == 0,
]


def _check_mask(mask_num: int):
    if not 0 <= mask_num < len(MASK_PATTERNS):
        raise ValueError(f"Invalid mask pattern: {mask_num}")


def apply_mask(matrix: Sequence[Sequence[Optional[int]]],
               roles: Sequence[Sequence[ModuleRole]],
               mask_num: int) -> List[List[int]]:
    """Return a copy of matrix with the mask applied to data modules only."""
    masked, _ = remove_mask(matrix, roles, mask_num)
    return masked


def remove_mask(matrix: Sequence[Sequence[Optional[int]]],
                roles: Sequence[Sequence[ModuleRole]],
                mask_num: int) -> Tuple[List[List[int]], int]:
    """
    XOR the mask over data modules, reading unknown (None) modules as 0.

    Returns the binary matrix and how many data modules were unknown.
    """
    _check_mask(mask_num)
    mask_func = MASK_PATTERNS[mask_num]
    size = len(matrix)
    result = [[0 if c is None else c for c in row] for row in matrix]
    unknown = 0

    for r in range(size):
        for c in range(size):
            if roles[r][c] != ModuleRole.DATA:
                continue
            if matrix[r][c] is None:
                unknown += 1
            if mask_func(r, c):
                result[r][c] ^= 1

    return result, unknown


#==============================================================================
# PENALTY SCORING
#==============================================================================

def calculate_penalty(matrix: List[List[int]]) -> int:
    """Calculate total penalty score for a masked matrix."""
    columns = [list(col) for col in zip(*matrix)]
    return (_penalty_runs(matrix) + _penalty_runs(columns)
            + _penalty_boxes(matrix)
            + _penalty_finder_like(matrix) + _penalty_finder_like(columns)
            + _penalty_balance(matrix))


def _penalty_runs(lines: List[List[int]]) -> int:
    """N1: 3 points for each run of 5 same-color modules, plus 1 per extra module."""
    penalty = 0
    for line in lines:
        run_length = 1
        for prev, curr in zip(line, line[1:]):
            if curr == prev:
                run_length += 1
                continue
            if run_length >= 5:
                penalty += run_length - 2
            run_length = 1
        if run_length >= 5:
            penalty += run_length - 2
    return penalty


def _penalty_boxes(matrix: List[List[int]]) -> int:
    """N2: 3 points per 2x2 same-color box (overlaps counted)."""
    penalty = 0
    size = len(matrix)
    for r in range(size - 1):
        for c in range(size - 1):
            color = matrix[r][c]
            if color == matrix[r][c + 1] == matrix[r + 1][c] == matrix[r + 1][c + 1]:
                penalty += 3
    return penalty


_FINDER_LIKE = ([1, 0, 1, 1, 1, 0, 1, 0, 0, 0, 0],
                [0, 0, 0, 0, 1, 0, 1, 1, 1, 0, 1])


def _penalty_finder_like(lines: List[List[int]]) -> int:
    """N3: 40 points per 1:1:3:1:1 pattern with four light modules on one side."""
    penalty = 0
    for line in lines:
        for i in range(len(line) - 10):
            if line[i:i + 11] in _FINDER_LIKE:
                penalty += 40
    return penalty


def _penalty_balance(matrix: List[List[int]]) -> int:
    """N4: 10 points per 5% the dark ratio deviates from 50%."""
    size = len(matrix)
    dark_count = sum(sum(row) for row in matrix)
    percent = (dark_count * 100) // (size * size)

    prev_multiple = percent - (percent % 5)
    next_multiple = prev_multiple + 5

    return min(
        abs(prev_multiple - 50) // 5,
        abs(next_multiple - 50) // 5
    ) * 10


def choose_best_mask(matrix: List[List[Optional[int]]],
                     roles: Sequence[Sequence[ModuleRole]],
                     ec_level: str) -> Tuple[int, int]:
    """
    Choose the mask pattern with lowest penalty.

    Each candidate is scored with its own format information in place,
    since those modules take part in the runs and finder-like patterns.
    Ties go to the lower mask number.
    """
    best_mask = 0
    best_penalty = None

    for mask_num in range(len(MASK_PATTERNS)):
        masked = apply_mask(matrix, roles, mask_num)
        place_format_info(masked, ec_level, mask_num)
        penalty = calculate_penalty(masked)
        logger.debug("Mask %d penalty %d", mask_num, penalty)

        if best_penalty is None or penalty < best_penalty:
            best_penalty = penalty
            best_mask = mask_num

    return best_mask, best_penalty
