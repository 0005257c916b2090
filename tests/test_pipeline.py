import unittest

from qr_codec import (DataTooLongError, DecodeStage, DecoderConfig, EncoderConfig, QRDecoder,
                      QREncoder, UnsupportedCharacterError, decode, encode)
from qr_codec.bch import FORMAT_BITS, bits_to_list, get_format_string, get_version_string
from qr_codec.bitstream import MODE_ALPHANUMERIC, MODE_BYTE, MODE_NUMERIC, make_segment
from qr_codec.decoder import extract_format, extract_version
from qr_codec.matrix import format_positions, version_positions
from qr_codec.zigzag import data_positions

HELLO_DATA = [32, 91, 11, 120, 209, 114, 220, 77, 67, 64, 236, 17, 236, 17, 236, 17]
HELLO_EC = [196, 35, 39, 119, 235, 215, 231, 226, 93, 23]


def _copy(matrix):
    return [list(row) for row in matrix]


def _write_format(matrix, positions, word, flips=()):
    bits = bits_to_list(word, FORMAT_BITS)
    for i, (row, col) in enumerate(positions):
        matrix[row][col] = bits[i] ^ (1 if i in flips else 0)


def _write_version(matrix, positions, word, flips=()):
    for i, (row, col) in enumerate(positions):
        matrix[row][col] = ((word >> i) & 1) ^ (1 if i in flips else 0)


class TestEncoding(unittest.TestCase):
    def test_hello_world_codewords(self) -> None:
        symbol = encode("HELLO WORLD", ec_level='M')
        self.assertEqual(symbol.version, 1)
        self.assertEqual(symbol.size, 21)
        self.assertEqual(symbol.data_codewords, HELLO_DATA)
        self.assertEqual(symbol.codewords, HELLO_DATA + HELLO_EC)
        self.assertEqual(symbol.segments[0].mode, MODE_ALPHANUMERIC)

    def test_matrix_is_binary(self) -> None:
        symbol = encode("https://example.com/", ec_level='Q')
        self.assertTrue(all(cell in (0, 1) for row in symbol.matrix for cell in row))
        self.assertEqual(symbol.matrix[4 * symbol.version + 9][8], 1)

    def test_version_one_capacity_at_level_l(self) -> None:
        cases = [("1" * 41, "1" * 42), ("A" * 25, "A" * 26), ("a" * 17, "a" * 18)]
        for fits, overflows in cases:
            self.assertEqual(encode(fits, ec_level='L').version, 1, len(fits))
            self.assertEqual(encode(overflows, ec_level='L').version, 2, len(overflows))

    def test_largest_payload(self) -> None:
        symbol = encode("a" * 2953, ec_level='L', mask_pattern=0)
        self.assertEqual(symbol.version, 40)
        with self.assertRaises(DataTooLongError):
            encode("a" * 2954, ec_level='L', mask_pattern=0)

    def test_forced_version_too_small(self) -> None:
        with self.assertRaises(DataTooLongError):
            encode("a" * 30, ec_level='H', version=1)

    def test_forced_mode(self) -> None:
        self.assertEqual(encode("123", mode=MODE_BYTE).segments[0].mode, MODE_BYTE)
        with self.assertRaises(UnsupportedCharacterError):
            encode("abc", mode=MODE_NUMERIC)

    def test_invalid_config(self) -> None:
        for config in (EncoderConfig(ec_level='X'), EncoderConfig(version=41),
                       EncoderConfig(mask_pattern=8), EncoderConfig(mode=0b1000)):
            with self.assertRaises(ValueError):
                QREncoder(config)
        with self.assertRaises(ValueError):
            QRDecoder(DecoderConfig(max_format_unknowns=16))


class TestRoundTrip(unittest.TestCase):
    def test_every_mask(self) -> None:
        for mask in range(8):
            symbol = encode("HELLO WORLD", ec_level='M', version=1, mask_pattern=mask)
            result = decode(symbol.matrix)
            self.assertTrue(result.success, mask)
            self.assertEqual(result.text, "HELLO WORLD")
            self.assertEqual(result.mask_pattern, mask)
            self.assertEqual(result.ec_level, 'M')
            self.assertEqual(result.stage, DecodeStage.DONE)
            self.assertEqual(result.confidence, 1.0)

    def test_every_level(self) -> None:
        for level in ('L', 'M', 'Q', 'H'):
            symbol = encode("Round trip at level " + level, ec_level=level)
            result = decode(symbol.matrix)
            self.assertEqual(result.text, "Round trip at level " + level)
            self.assertEqual(result.ec_level, level)

    def test_version_information_symbols(self) -> None:
        text = "x" * 150
        symbol = encode(text, ec_level='L', version=7)
        result = decode(symbol.matrix)
        self.assertTrue(result.success)
        self.assertEqual(result.text, text)
        self.assertEqual(result.version, 7)
        self.assertEqual(result.version_info.confidence, 1.0)

    def test_largest_version(self) -> None:
        text = "0123456789" * 50
        symbol = encode(text, ec_level='Q', version=40, mask_pattern=2)
        self.assertEqual(symbol.size, 177)
        result = decode(symbol.matrix)
        self.assertEqual(result.text, text)
        self.assertEqual(result.version, 40)

    def test_utf8_text(self) -> None:
        text = "Grüße, 世界 ✓"
        self.assertEqual(decode(encode(text).matrix).text, text)

    def test_several_segments(self) -> None:
        segments = [make_segment("PRODUCT-"), make_segment("0042917"), make_segment(" in stock")]
        symbol = QREncoder(EncoderConfig(ec_level='Q')).encode_segments(segments)
        result = decode(symbol.matrix)
        self.assertEqual(result.text, "PRODUCT-0042917 in stock")
        self.assertEqual([s.mode for s in result.bitstream.segments],
                         [MODE_ALPHANUMERIC, MODE_NUMERIC, MODE_BYTE])

    def test_finder_centers_are_carried(self) -> None:
        centers = [(3.5, 3.5), (17.5, 3.5), (3.5, 17.5)]
        result = decode(encode("HI").matrix, finder_centers=centers)
        self.assertEqual(result.finder_centers, centers)


class TestDamagedSymbols(unittest.TestCase):
    def test_corrects_up_to_capacity(self) -> None:
        # Version 1-H: 17 EC codewords, up to 8 codeword errors
        symbol = encode("ABC123", ec_level='H', version=1, mask_pattern=4)
        matrix = _copy(symbol.matrix)
        positions = data_positions(1)
        for codeword in range(0, 16, 2):
            row, col = positions[codeword * 8 + 3]
            matrix[row][col] ^= 1
        result = decode(matrix)
        self.assertTrue(result.success)
        self.assertEqual(result.text, "ABC123")
        self.assertEqual(result.errors_corrected, 8)
        self.assertEqual(result.confidence, 1.0)

    def test_uncorrectable_still_extracts(self) -> None:
        # Version 1-L only corrects 3 codewords; invert every data module
        symbol = encode("HELLO", ec_level='L', version=1, mask_pattern=0)
        matrix = _copy(symbol.matrix)
        for row, col in data_positions(1):
            matrix[row][col] ^= 1
        result = decode(matrix)
        self.assertFalse(result.success)
        self.assertEqual(result.failure.stage, DecodeStage.CORRECT_ERRORS)
        self.assertEqual(result.failure.max_correctable, 3)
        self.assertEqual(result.stage, DecodeStage.DONE)
        self.assertFalse(result.correction.is_recoverable)
        self.assertLess(result.confidence, 1.0)

    def test_unknown_data_modules(self) -> None:
        symbol = encode("HELLO WORLD", ec_level='M', version=1, mask_pattern=1)
        matrix = _copy(symbol.matrix)
        for row, col in data_positions(1)[40:45]:
            matrix[row][col] = None
        result = decode(matrix)
        self.assertEqual(result.text, "HELLO WORLD")
        self.assertEqual(result.unknown_data_modules, 5)
        self.assertAlmostEqual(result.confidence, 1.0 - 5 / 208)

    def test_format_falls_back_to_second_copy(self) -> None:
        symbol = encode("HELLO WORLD", ec_level='Q', mask_pattern=6)
        matrix = _copy(symbol.matrix)
        first, _ = format_positions(len(matrix))
        for row, col in first:
            matrix[row][col] = None
        result = decode(matrix)
        self.assertTrue(result.success)
        self.assertEqual(result.format.source, 2)
        self.assertIsNone(result.format.locations[0])
        self.assertEqual(result.mask_pattern, 6)

    def test_format_damaged_bits_are_corrected(self) -> None:
        symbol = encode("HELLO WORLD", ec_level='M', mask_pattern=2)
        matrix = _copy(symbol.matrix)
        first, second = format_positions(len(matrix))
        for row, col in first[:2] + second[:3]:
            matrix[row][col] ^= 1
        result = decode(matrix)
        self.assertEqual(result.text, "HELLO WORLD")
        self.assertEqual(result.format.source, 1)
        self.assertEqual(result.format.confidence, 0.5)

    def test_unreadable_format(self) -> None:
        symbol = encode("HELLO WORLD")
        matrix = _copy(symbol.matrix)
        for positions in format_positions(len(matrix)):
            for row, col in positions:
                matrix[row][col] = None
        result = decode(matrix)
        self.assertFalse(result.success)
        self.assertEqual(result.stage, DecodeStage.EXTRACT_FORMAT)
        self.assertEqual(result.failure.stage, DecodeStage.EXTRACT_FORMAT)
        self.assertEqual(result.confidence, 0.0)
        self.assertEqual(result.text, "")

    def test_version_falls_back_to_second_copy(self) -> None:
        symbol = encode("v" * 100, ec_level='M', version=8)
        matrix = _copy(symbol.matrix)
        bottom_left, _ = version_positions(len(matrix))
        for row, col in bottom_left:
            matrix[row][col] = None
        result = decode(matrix)
        self.assertTrue(result.success)
        self.assertEqual(result.version, 8)
        self.assertIsNone(result.version_info.locations[0])

    def test_version_disagrees_with_size(self) -> None:
        symbol = encode("HELLO WORLD", version=7)
        matrix = _copy(symbol.matrix)
        word = get_version_string(8)
        for positions in version_positions(len(matrix)):
            for i, (row, col) in enumerate(positions):
                matrix[row][col] = (word >> i) & 1
        result = decode(matrix)
        self.assertFalse(result.success)
        self.assertEqual(result.failure.stage, DecodeStage.EXTRACT_VERSION)
        self.assertIn("8", result.failure.message)

    def test_bad_geometry(self) -> None:
        result = decode([[0] * 22 for _ in range(22)])
        self.assertEqual(result.failure.stage, DecodeStage.EXTRACT_FORMAT)
        result = decode([[0] * 21 for _ in range(20)])
        self.assertEqual(result.failure.stage, DecodeStage.EXTRACT_FORMAT)
        self.assertEqual(str(result.failure.stage), "ExtractFormat")


class TestFormatLocations(unittest.TestCase):
    def test_tie_keeps_first_location(self) -> None:
        matrix = [[0] * 21 for _ in range(21)]
        first, second = format_positions(21)
        _write_format(matrix, first, get_format_string('M', 5))
        _write_format(matrix, second, get_format_string('L', 2))
        fmt = extract_format(matrix)
        self.assertEqual(fmt.source, 1)
        self.assertEqual((fmt.ec_level, fmt.mask_pattern), ('M', 5))
        self.assertEqual(fmt.locations[1].info.mask_pattern, 2)

    def test_fewer_errors_wins(self) -> None:
        matrix = [[0] * 21 for _ in range(21)]
        first, second = format_positions(21)
        _write_format(matrix, first, get_format_string('M', 5), flips=(0,))
        _write_format(matrix, second, get_format_string('L', 2))
        fmt = extract_format(matrix)
        self.assertEqual(fmt.source, 2)
        self.assertEqual((fmt.ec_level, fmt.mask_pattern), ('L', 2))
        self.assertEqual(fmt.confidence, 1.0)
        self.assertEqual(fmt.locations[0].info.error_count, 1)

    def test_second_copy_overrides_damaged_first(self) -> None:
        symbol = encode("HELLO WORLD", ec_level='M', version=1, mask_pattern=4)
        matrix = _copy(symbol.matrix)
        first, second = format_positions(len(matrix))
        _write_format(matrix, first, get_format_string('M', 1), flips=(3,))
        result = decode(matrix)
        self.assertTrue(result.success)
        self.assertEqual(result.text, "HELLO WORLD")
        self.assertEqual(result.format.source, 2)
        self.assertEqual(result.mask_pattern, 4)
        self.assertEqual(result.format.locations[0].info.mask_pattern, 1)

    def test_confidence_follows_chosen_location(self) -> None:
        symbol = encode("HELLO WORLD", ec_level='M', version=1, mask_pattern=4)
        matrix = _copy(symbol.matrix)
        first, second = format_positions(len(matrix))
        word = get_format_string('M', 4)
        _write_format(matrix, first, word, flips=(1, 9))
        _write_format(matrix, second, word, flips=(12,))
        result = decode(matrix)
        self.assertEqual(result.format.source, 2)
        self.assertEqual(result.format.confidence, 0.75)
        self.assertAlmostEqual(result.confidence, 0.75)


class TestVersionLocations(unittest.TestCase):
    def test_unknown_bits_are_searched(self) -> None:
        symbol = encode("version nine", ec_level='L', version=9)
        matrix = _copy(symbol.matrix)
        bottom_left, top_right = version_positions(len(matrix))
        for row, col in bottom_left[:5] + top_right[10:16]:
            matrix[row][col] = None
        result = decode(matrix)
        self.assertTrue(result.success)
        self.assertEqual(result.version, 9)
        first, second = result.version_info.locations
        self.assertEqual((first.unknown_count, second.unknown_count), (5, 6))
        self.assertEqual((first.version, second.version), (9, 9))
        self.assertAlmostEqual(first.confidence, 0.75)
        self.assertAlmostEqual(second.confidence, 0.70)
        self.assertAlmostEqual(result.version_info.confidence, 1.45 / 1.5)

    def test_unknown_budget(self) -> None:
        symbol = encode("version nine", ec_level='L', version=9)
        matrix = _copy(symbol.matrix)
        bottom_left, top_right = version_positions(len(matrix))
        for row, col in bottom_left[:5] + top_right[10:16]:
            matrix[row][col] = None
        result = QRDecoder(DecoderConfig(max_version_unknowns=4)).decode(matrix)
        self.assertFalse(result.success)
        self.assertEqual(result.failure.stage, DecodeStage.EXTRACT_VERSION)

    def test_more_confident_copy_wins(self) -> None:
        size = 53
        matrix = [[0] * size for _ in range(size)]
        bottom_left, top_right = version_positions(size)
        _write_version(matrix, bottom_left, get_version_string(9), flips=(0, 5))
        _write_version(matrix, top_right, get_version_string(10))
        info = extract_version(matrix)
        self.assertEqual(info.version, 10)
        self.assertEqual(info.confidence, 1.0)
        self.assertEqual(info.locations[0].version, 9)
        self.assertEqual(info.locations[0].error_count, 2)
        self.assertEqual(info.locations[0].confidence, 0.5)

    def test_disagreeing_tie_keeps_first_location(self) -> None:
        size = 53
        matrix = [[0] * size for _ in range(size)]
        bottom_left, top_right = version_positions(size)
        _write_version(matrix, bottom_left, get_version_string(12), flips=(4,))
        _write_version(matrix, top_right, get_version_string(13), flips=(7,))
        info = extract_version(matrix)
        self.assertEqual(info.version, 12)
        self.assertEqual(info.confidence, 0.75)

    def test_damaged_disagreeing_copy_is_outvoted(self) -> None:
        symbol = encode("version nine", ec_level='L', version=9)
        matrix = _copy(symbol.matrix)
        _, top_right = version_positions(len(matrix))
        _write_version(matrix, top_right, get_version_string(10), flips=(2, 11))
        result = decode(matrix)
        self.assertTrue(result.success)
        self.assertEqual(result.version, 9)
        self.assertEqual(result.version_info.confidence, 1.0)
        self.assertEqual(result.version_info.locations[1].version, 10)


if __name__ == "__main__":
    unittest.main()
