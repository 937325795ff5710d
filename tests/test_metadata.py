import tempfile
import unittest
from pathlib import Path

from gridyolo_kit.metadata import load_labels


class TestLoadLabels(unittest.TestCase):
    def _write(self, text: str) -> Path:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = Path(tmpdir.name) / "labels.txt"
        path.write_bytes(text.encode("utf-8"))
        return path

    def test_one_label_per_line(self) -> None:
        self.assertEqual(load_labels(self._write("aeroplane\nbicycle\nbird\n")), ["aeroplane", "bicycle", "bird"])

    def test_crlf_and_trailing_blank_lines(self) -> None:
        self.assertEqual(load_labels(self._write("cat\r\ndog\r\n\r\n\n")), ["cat", "dog"])

    def test_empty_file_rejected(self) -> None:
        with self.assertRaises(ValueError):
            load_labels(self._write("\n\n"))

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_labels("no/such/labels.txt")

    def test_bundled_voc_labels(self) -> None:
        path = Path(__file__).resolve().parents[1] / "data" / "labels" / "VOC_pascal_classes.txt"
        labels = load_labels(path)
        self.assertEqual(len(labels), 20)
        self.assertEqual(labels[14], "person")


if __name__ == "__main__":
    unittest.main()
