"""
Codeword block layout: splitting data into RS blocks and interleaving.

Larger symbols split their data codewords into several blocks, each with
its own error correction codewords. The final codeword sequence reads the
blocks column by column so that a burst of damage spreads across blocks.
"""

from dataclasses import dataclass
from typing import List, Tuple

from .tables import EC_BLOCKS, validate_ec_level, validate_version


@dataclass(frozen=True)
class ECBlockPlan:
    """Block structure for one (version, level) pair."""

    version: int
    ec_level: str
    ec_codewords_per_block: int
    groups: Tuple[Tuple[int, int], ...]  # (block_count, data_codewords_per_block)

    @property
    def block_data_counts(self) -> List[int]:
        counts = []
        for block_count, data_count in self.groups:
            counts.extend([data_count] * block_count)
        return counts

    @property
    def num_blocks(self) -> int:
        return sum(count for count, _ in self.groups)

    @property
    def data_codewords(self) -> int:
        return sum(self.block_data_counts)

    @property
    def total_codewords(self) -> int:
        return self.data_codewords + self.num_blocks * self.ec_codewords_per_block

    @property
    def min_data_count(self) -> int:
        return min(self.block_data_counts)


def get_block_plan(version: int, ec_level: str) -> ECBlockPlan:
    validate_version(version)
    validate_ec_level(ec_level)
    ec_per_block, groups = EC_BLOCKS[version][ec_level]
    return ECBlockPlan(version, ec_level, ec_per_block, groups)


def split_data_blocks(data: List[int], plan: ECBlockPlan) -> List[List[int]]:
    """Cut the data codewords into blocks, shorter blocks first."""
    if len(data) != plan.data_codewords:
        raise ValueError(f"Expected {plan.data_codewords} data codewords, got {len(data)}")
    blocks = []
    offset = 0
    for count in plan.block_data_counts:
        blocks.append(list(data[offset:offset + count]))
        offset += count
    return blocks


def interleave(data_blocks: List[List[int]], ec_blocks: List[List[int]]) -> List[int]:
    """
    Column-wise read of all blocks: data codewords first, then EC codewords.

    Blocks of the longer group contribute their extra data codeword after
    every block has contributed its first min_data_count codewords.
    """
    result = []
    max_data = max(len(block) for block in data_blocks)
    for i in range(max_data):
        for block in data_blocks:
            if i < len(block):
                result.append(block[i])

    max_ec = max(len(block) for block in ec_blocks)
    for i in range(max_ec):
        for block in ec_blocks:
            if i < len(block):
                result.append(block[i])
    return result


def deinterleave(codewords: List[int], plan: ECBlockPlan) -> List[List[int]]:
    """
    Inverse of interleave: rebuild each block as data followed by EC codewords.

    Short input stops early, leaving the trailing blocks incomplete; callers
    detect this by comparing block lengths with the plan.
    """
    counts = plan.block_data_counts
    num_blocks = len(counts)
    data_blocks = [[] for _ in range(num_blocks)]
    ec_blocks = [[] for _ in range(num_blocks)]

    order = []
    for i in range(max(counts)):
        for b in range(num_blocks):
            if i < counts[b]:
                order.append(data_blocks[b])
    for _ in range(plan.ec_codewords_per_block):
        for b in range(num_blocks):
            order.append(ec_blocks[b])

    # zip stops at the shorter of the two
    for target, value in zip(order, codewords):
        target.append(value)

    return [d + e for d, e in zip(data_blocks, ec_blocks)]
