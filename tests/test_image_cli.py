import io
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout

from PIL import Image

from qr_codec import decode, encode
from qr_codec.cli import EXIT_DECODE_FAILURE, EXIT_OK, EXIT_USAGE, main
from qr_codec.image import matrix_to_image, sample_image, save_image


def _run(argv):
    out, err = io.StringIO(), io.StringIO()
    with redirect_stdout(out), redirect_stderr(err):
        code = main(argv)
    return code, out.getvalue(), err.getvalue()


class TestImage(unittest.TestCase):
    def test_render_size_and_quiet_zone(self) -> None:
        symbol = encode("HELLO WORLD")
        img = matrix_to_image(symbol.matrix, scale=4, border=2)
        self.assertEqual(img.size, (25 * 4, 25 * 4))
        self.assertEqual(img.mode, '1')
        gray = img.convert('L')
        self.assertEqual(gray.getpixel((0, 0)), 255)
        # Top-left finder corner starts right after the quiet zone
        self.assertEqual(gray.getpixel((8, 8)), 0)

    def test_sample_round_trip(self) -> None:
        symbol = encode("Pillow round trip", ec_level='Q')
        img = matrix_to_image(symbol.matrix)
        self.assertEqual(sample_image(img), symbol.matrix)
        self.assertEqual(decode(sample_image(img)).text, "Pillow round trip")

    def test_sample_smeared_module_is_unknown(self) -> None:
        symbol = encode("HELLO WORLD")
        img = matrix_to_image(symbol.matrix, scale=10, border=4).convert('L')
        # Paint the centre half of module (10, 10) half dark
        left = (4 + 10) * 10
        top = (4 + 10) * 10
        for y in range(top + 2, top + 8):
            for x in range(left + 2, left + 8):
                img.putpixel((x, y), 0 if x < left + 5 else 255)
        self.assertIsNone(sample_image(img)[10][10])

    def test_sample_rejects_bad_images(self) -> None:
        with self.assertRaises(ValueError):
            sample_image(Image.new('L', (300, 290), 255))
        with self.assertRaises(ValueError):
            sample_image(Image.new('L', (100, 100), 255))

    def test_save_image(self) -> None:
        symbol = encode("saved")
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "saved.png")
            save_image(symbol.matrix, path, scale=3)
            with Image.open(path) as img:
                self.assertEqual(img.size, ((symbol.size + 8) * 3,) * 2)


class TestCommandLine(unittest.TestCase):
    def test_encode_prints_symbol(self) -> None:
        code, out, _ = _run(["encode", "HELLO WORLD", "--ec-level", "Q", "--mask", "3"])
        self.assertEqual(code, EXIT_OK)
        self.assertIn("██", out)
        self.assertIn("version 1-Q, mask 3", out)

    def test_encode_then_decode(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "symbol.png")
            code, _, _ = _run(["encode", "command line", "--output", path])
            self.assertEqual(code, EXIT_OK)
            self.assertTrue(os.path.exists(path))

            code, out, err = _run(["decode", path])
            self.assertEqual(code, EXIT_OK)
            self.assertEqual(out.strip(), "command line")
            self.assertIn("confidence 1.000", err)

    def test_decode_blank_image_fails(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "blank.png")
            Image.new('1', (290, 290), 1).save(path)
            code, _, err = _run(["decode", path])
            self.assertEqual(code, EXIT_DECODE_FAILURE)
            self.assertIn("ExtractFormat", err)

    def test_usage_errors(self) -> None:
        code, _, err = _run(["encode", "a" * 300, "--version", "1"])
        self.assertEqual(code, EXIT_USAGE)
        self.assertIn("error:", err)
        code, _, _ = _run(["decode", "/nonexistent/symbol.png"])
        self.assertEqual(code, EXIT_USAGE)


if __name__ == "__main__":
    unittest.main()
