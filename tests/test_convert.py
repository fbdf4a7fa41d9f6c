"""
Tests for the Pillow-backed image -> DDS conversions.
"""

import io
import os
import struct
import sys
import tempfile
import unittest
from unittest import mock
from pathlib import Path

from PIL import Image

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from afbpatch.convert import (
    convert_bg,
    convert_dds,
    convert_fx,
    convert_jk,
    decode_image,
    is_valid_image,
    resize_if_needed,
    save_dds_file,
)
from afbpatch.errors import AfbIOError, CodecError, InvalidArgument


def make_image(path, size, color=(255, 0, 0, 255)):
    Image.new("RGBA", size, color).save(path)
    return path


def dds_info(blob):
    height, width = struct.unpack_from("<II", blob, 12)
    return width, height, blob[84:88]


class TestIsValidImage(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_png(self):
        is_valid_image(make_image(self.dir / "a.png", (16, 16)))

    def test_tga_by_extension(self):
        is_valid_image(self.dir / "not_even_there.tga")

    def test_tga_extension_is_case_sensitive(self):
        with self.assertRaises(AfbIOError):
            is_valid_image(self.dir / "NOT_EVEN_THERE.TGA")

    def test_decompression_bomb_is_codec_error(self):
        p = make_image(self.dir / "big.png", (16, 16))
        with mock.patch.object(Image, "MAX_IMAGE_PIXELS", 10):
            with self.assertRaises(CodecError):
                is_valid_image(p)
            with self.assertRaises(CodecError):
                decode_image(p)

    def test_empty_path(self):
        with self.assertRaises(AfbIOError):
            is_valid_image(Path(""))

    def test_nonexistent(self):
        with self.assertRaises(AfbIOError):
            is_valid_image(self.dir / "nonexistent_file.png")

    def test_too_small(self):
        p = self.dir / "tiny.png"
        p.write_bytes(b"\x89PNG")
        with self.assertRaises(CodecError):
            is_valid_image(p)

    def test_not_an_image(self):
        p = self.dir / "notes.png"
        p.write_bytes(b"just some text, definitely not a picture\n" * 4)
        with self.assertRaises(CodecError):
            is_valid_image(p)


class TestConvert(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_decode_corrupt(self):
        p = self.dir / "bad.jpg"
        p.write_bytes(b"\x00" * 64)
        with self.assertRaises(CodecError):
            decode_image(p)

    def test_resize_noop(self):
        img = Image.new("RGBA", (8, 8))
        self.assertIs(resize_if_needed(img, 8, 8), img)
        self.assertEqual(resize_if_needed(img, 4, 12).size, (4, 12))

    def test_invalid_dimensions(self):
        p = make_image(self.dir / "a.png", (64, 64))
        with self.assertRaises(InvalidArgument):
            convert_dds(p, 0, 64, "DXT1")
        with self.assertRaises(InvalidArgument):
            convert_dds(p, 64, -4, "DXT1")

    def test_convert_same_size(self):
        p = make_image(self.dir / "a.png", (64, 64))
        blob = convert_dds(p, 64, 64, "DXT1")
        self.assertEqual(blob[:4], b"DDS ")
        self.assertEqual(dds_info(blob), (64, 64, b"DXT1"))

    def test_convert_resize(self):
        p = make_image(self.dir / "a.png", (64, 64))
        blob = convert_dds(p, 32, 32, "DXT1")
        self.assertEqual(dds_info(blob), (32, 32, b"DXT1"))

    def test_bg_and_jk_sizes(self):
        p = make_image(self.dir / "a.png", (40, 40), (0, 128, 255, 255))
        self.assertEqual(dds_info(convert_bg(p)), (1920, 1080, b"DXT1"))
        self.assertEqual(dds_info(convert_jk(p)), (300, 300, b"DXT1"))

    def test_save_dds_file(self):
        p = make_image(self.dir / "a.png", (64, 64))
        out = self.dir / "output.dds"
        save_dds_file(convert_dds(p, 64, 64, "DXT1"), out)
        self.assertTrue(out.exists())
        with self.assertRaises(AfbIOError):
            save_dds_file(b"DDS ", self.dir / "missing" / "x.dds")


class TestConvertFx(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_empty_slots_are_skipped(self):
        red = make_image(self.dir / "red.png", (256, 256))
        blob = convert_fx([None, red, None, red])
        self.assertEqual(dds_info(blob), (512, 512, b"DXT5"))

        with Image.open(io.BytesIO(blob)) as im:
            im = im.convert("RGBA")
            self.assertEqual(im.getpixel((10, 10))[3], 255)      # 1st present input
            self.assertGreater(im.getpixel((10, 10))[0], 200)
            self.assertEqual(im.getpixel((300, 10))[3], 255)     # 2nd present input
            self.assertEqual(im.getpixel((10, 300))[3], 0)       # unused
            self.assertEqual(im.getpixel((300, 300))[3], 0)      # unused

    def test_only_first_four_slots_read(self):
        a = make_image(self.dir / "a.png", (256, 256))
        # the 5th entry is outside the slot range even though slot 0 is empty
        self.assertEqual(convert_fx([None, a, a, a, a]), convert_fx([a, a, a]))

    def test_resizes_inputs(self):
        imgs = [make_image(self.dir / f"{n}.png", (n, n)) for n in (100, 200, 300, 400)]
        blob = convert_fx(imgs)
        self.assertEqual(dds_info(blob), (512, 512, b"DXT5"))

    def test_extra_slots_ignored(self):
        a = make_image(self.dir / "a.png", (256, 256))
        self.assertEqual(convert_fx([a, a, a, a, self.dir / "never_opened.png"]),
                         convert_fx([a, a, a, a]))

    def test_bad_input_fails(self):
        a = make_image(self.dir / "a.png", (256, 256))
        with self.assertRaises(AfbIOError):
            convert_fx([a, self.dir / "nonexistent.jpg"])


if __name__ == "__main__":
    unittest.main()
