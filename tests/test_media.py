import os
import tempfile
import unittest

from schema_llm import media
from schema_llm.errors import MediaError


class IsBase64Tests(unittest.TestCase):
    def test_rejects_invalid_characters(self) -> None:
        self.assertFalse(media.is_base64("not base64!!"))

    def test_accepts_data_uri(self) -> None:
        self.assertTrue(media.is_base64("data:image/png;base64,abc"))

    def test_padding_rules(self) -> None:
        self.assertTrue(media.is_base64("aGVsbG8g"))
        self.assertTrue(media.is_base64("aA=="))
        # a single pad character is never accepted
        self.assertFalse(media.is_base64("aGVsbG8="))

    def test_ignores_whitespace(self) -> None:
        self.assertTrue(media.is_base64("aGVs\nbG8g"))

    def test_rejects_bad_length_and_padding(self) -> None:
        self.assertFalse(media.is_base64("abc"))
        self.assertFalse(media.is_base64("abc==="))
        self.assertFalse(media.is_base64("ab=c"))
        self.assertFalse(media.is_base64(""))
        self.assertFalse(media.is_base64(None))


class EncodeFileTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def test_encodes_file_contents(self) -> None:
        path = os.path.join(self.tmp.name, "pixel.png")
        with open(path, "wb") as fh:
            fh.write(b"hello")
        self.assertEqual(media.encode_file(path), "aGVsbG8=")
        self.assertEqual(media.encode(b"hello"), "aGVsbG8=")

    def test_missing_file(self) -> None:
        with self.assertRaises(MediaError):
            media.encode_file(os.path.join(self.tmp.name, "nope.png"))

    def test_file_over_size_ceiling(self) -> None:
        path = os.path.join(self.tmp.name, "big.bin")
        with open(path, "wb") as fh:
            fh.truncate(media.MAX_IMAGE_SIZE + 1)
        with self.assertRaises(MediaError) as ctx:
            media.encode_file(path)
        self.assertIn("too large", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
