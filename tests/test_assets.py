import os
import struct
import sys
import tempfile
import unittest
from pathlib import Path

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from afbpatch.assets import (
    FX_DUMMY,
    NF_DUMMY,
    STAGE_CHUNKS,
    STAGE_TEMPLATE,
    dds_blank,
    load_template,
)
from afbpatch.errors import AfbIOError, InvalidArgument
from afbpatch.locate import locate_dds_chunks


class TestBuiltinAssets(unittest.TestCase):

    def test_template_layout(self):
        self.assertEqual(len(STAGE_CHUNKS), 2)
        (bg_s, bg_e), (fx_s, fx_e) = STAGE_CHUNKS
        self.assertEqual(STAGE_TEMPLATE[bg_s:bg_s + 4], b"DDS ")
        self.assertEqual(bg_e, fx_s)
        self.assertEqual(STAGE_TEMPLATE[fx_e:fx_e + 4], b"POF0")
        self.assertEqual(tuple(locate_dds_chunks(STAGE_TEMPLATE)), STAGE_CHUNKS)

    def test_fx_dummy_is_blank_512_dxt5(self):
        self.assertEqual(FX_DUMMY[:4], b"DDS ")
        height, width = struct.unpack_from("<II", FX_DUMMY, 12)
        self.assertEqual((width, height), (512, 512))
        self.assertEqual(FX_DUMMY[84:88], b"DXT5")
        self.assertEqual(len(FX_DUMMY), 128 + 128 * 128 * 16)
        self.assertEqual(locate_dds_chunks(FX_DUMMY), [(0, len(FX_DUMMY))])

    def test_sidecar_constant(self):
        self.assertEqual(NF_DUMMY[:4], b"NFX0")
        self.assertEqual(len(NF_DUMMY), 16)

    def test_dds_blank_partial_blocks(self):
        blob = dds_blank(5, 3, b"DXT1")
        self.assertEqual(len(blob), 128 + 2 * 1 * 8)


class TestLoadTemplate(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_roundtrip_builtin(self):
        p = self.dir / "stage.afb"
        p.write_bytes(STAGE_TEMPLATE)
        t = load_template(p)
        self.assertEqual(t.data, STAGE_TEMPLATE)
        self.assertEqual(t.chunks, STAGE_CHUNKS)

    def test_wrong_chunk_count(self):
        p = self.dir / "one.afb"
        p.write_bytes(b"hdrDDS onlyonePOF0")
        with self.assertRaises(InvalidArgument):
            load_template(p)

    def test_missing_file(self):
        with self.assertRaises(AfbIOError):
            load_template(self.dir / "missing.afb")


if __name__ == "__main__":
    unittest.main()
