import unittest

from qr_codec.blocks import deinterleave, get_block_plan, interleave, split_data_blocks
from qr_codec.matrix import QRMatrix
from qr_codec.tables import (ALIGNMENT_POSITIONS, EC_LEVELS, data_codeword_count, remainder_bits,
                             symbol_size, total_codeword_count, version_for_size)

TOTAL_CODEWORDS = [
    26, 44, 70, 100, 134, 172, 196, 242, 292, 346,
    404, 466, 532, 581, 655, 733, 815, 901, 991, 1085,
    1156, 1258, 1364, 1474, 1588, 1706, 1828, 1921, 2051, 2185,
    2323, 2465, 2611, 2761, 2876, 3034, 3196, 3362, 3532, 3706,
]


class TestTables(unittest.TestCase):
    def test_total_codewords_per_version(self) -> None:
        for version, expected in enumerate(TOTAL_CODEWORDS, start=1):
            for level in EC_LEVELS:
                self.assertEqual(total_codeword_count(version, level), expected, (version, level))

    def test_data_capacity_shrinks_with_level(self) -> None:
        for version in range(1, 41):
            capacities = [data_codeword_count(version, level) for level in EC_LEVELS]
            self.assertEqual(capacities, sorted(capacities, reverse=True))

    def test_codewords_fill_the_data_region(self) -> None:
        for version in range(1, 41):
            modules = QRMatrix(version).data_module_count
            self.assertEqual(modules, TOTAL_CODEWORDS[version - 1] * 8 + remainder_bits(version),
                             version)

    def test_alignment_positions_end_at_the_far_edge(self) -> None:
        for version in range(2, 41):
            positions = ALIGNMENT_POSITIONS[version]
            self.assertEqual(positions[0], 6)
            self.assertEqual(positions[-1], symbol_size(version) - 7)
            self.assertEqual(len(positions), version // 7 + 2)

    def test_size_round_trip(self) -> None:
        self.assertEqual(symbol_size(1), 21)
        self.assertEqual(symbol_size(40), 177)
        for version in range(1, 41):
            self.assertEqual(version_for_size(symbol_size(version)), version)
        for size in (0, 20, 22, 181):
            with self.assertRaises(ValueError):
                version_for_size(size)


class TestBlockPlan(unittest.TestCase):
    def test_single_block(self) -> None:
        plan = get_block_plan(1, 'M')
        self.assertEqual(plan.groups, ((1, 16),))
        self.assertEqual(plan.ec_codewords_per_block, 10)
        self.assertEqual(plan.total_codewords, 26)

    def test_two_groups(self) -> None:
        plan = get_block_plan(5, 'Q')
        self.assertEqual(plan.block_data_counts, [15, 15, 16, 16])
        self.assertEqual(plan.ec_codewords_per_block, 18)
        self.assertEqual(plan.min_data_count, 15)
        self.assertEqual(plan.data_codewords, 62)
        self.assertEqual(plan.total_codewords, 134)

    def test_invalid_lookup(self) -> None:
        with self.assertRaises(ValueError):
            get_block_plan(41, 'L')
        with self.assertRaises(ValueError):
            get_block_plan(1, 'X')


class TestInterleaving(unittest.TestCase):
    def setUp(self) -> None:
        self.plan = get_block_plan(5, 'Q')
        data = list(range(self.plan.data_codewords))
        self.data_blocks = split_data_blocks(data, self.plan)
        self.ec_blocks = [[1000 + 100 * b + i for i in range(18)] for b in range(4)]

    def test_split(self) -> None:
        self.assertEqual([len(b) for b in self.data_blocks], [15, 15, 16, 16])
        self.assertEqual(self.data_blocks[2][0], 30)
        with self.assertRaises(ValueError):
            split_data_blocks([0] * 10, self.plan)

    def test_interleave_order(self) -> None:
        stream = interleave(self.data_blocks, self.ec_blocks)
        self.assertEqual(len(stream), self.plan.total_codewords)
        # Column-wise over the first codewords of each block
        self.assertEqual(stream[:5], [0, 15, 30, 46, 1])
        # The two longer blocks contribute their 16th codeword last
        self.assertEqual(stream[60:62], [45, 61])
        self.assertEqual(stream[62:66], [1000, 1100, 1200, 1300])
        self.assertEqual(stream[-1], 1317)

    def test_deinterleave_inverts_interleave(self) -> None:
        stream = interleave(self.data_blocks, self.ec_blocks)
        blocks = deinterleave(stream, self.plan)
        self.assertEqual(blocks, [d + e for d, e in zip(self.data_blocks, self.ec_blocks)])

    def test_short_input_stops_early(self) -> None:
        stream = interleave(self.data_blocks, self.ec_blocks)
        blocks = deinterleave(stream[:63], self.plan)
        self.assertEqual([len(b) for b in blocks], [16, 15, 16, 16])
        self.assertEqual(sum(len(b) for b in blocks), 63)
        self.assertEqual(blocks[0][-1], 1000)


if __name__ == "__main__":
    unittest.main()
