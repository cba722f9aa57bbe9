import dataclasses
import json
import tempfile
import unittest
from pathlib import Path

from yolo_grid.config import ModelProfile, load_model_profile
from yolo_grid.errors import ConfigurationError
from yolo_grid.metadata import load_class_names
from yolo_grid.visualize import DEFAULT_PALETTE, FALLBACK_COLOR, ColorTable


class TestModelProfile(unittest.TestCase):
    def _write(self, name: str, text: str) -> Path:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = Path(tmpdir.name) / name
        path.write_text(text, encoding="utf-8")
        return path

    def _write_profile(self, payload: dict) -> Path:
        return self._write("profile.json", json.dumps(payload))

    def test_load_ok(self) -> None:
        path = self._write_profile(
            {
                "schema_version": 1,
                "row_count": 7,
                "column_count": 9,
                "class_count": 2,
                "boxes_per_cell": 2,
                "cell_width": 16,
                "cell_height": 24,
                "channel_count": 14,
                "anchors": [[1.0, 1.5], [2.0, 3.0]],
                "labels": ["person", "car"],
                "colors": [[0, 0, 255]],
                "input_name": "images",
                "output_name": "output",
            }
        )
        profile = load_model_profile(path)
        self.assertIsInstance(profile, ModelProfile)
        self.assertEqual(profile.layout.row_count, 7)
        self.assertEqual(profile.layout.column_count, 9)
        self.assertEqual(profile.layout.input_size, (144, 168))
        self.assertEqual(profile.anchors.pairs, ((1.0, 1.5), (2.0, 3.0)))
        self.assertEqual(profile.labels, ("person", "car"))
        self.assertEqual(profile.colors, ((0, 0, 255),))
        self.assertEqual(profile.input_name, "images")
        self.assertEqual(profile.output_name, "output")

    def test_replace_labels_keeps_other_fields(self) -> None:
        profile = load_model_profile(self._write_profile({"colors": [[1, 2, 3]], "input_name": "images"}))
        relabeled = dataclasses.replace(profile, labels=("cat", "dog"))
        self.assertEqual(relabeled.labels, ("cat", "dog"))
        self.assertEqual(relabeled.colors, ((1, 2, 3),))
        self.assertEqual(relabeled.input_name, "images")
        self.assertEqual(relabeled.layout, profile.layout)
        self.assertEqual(relabeled.anchors, profile.anchors)

    def test_empty_profile_is_tinyyolov2(self) -> None:
        profile = load_model_profile(self._write_profile({}))
        self.assertEqual(profile.layout.channel_count, 125)
        self.assertEqual(len(profile.anchors), 5)
        self.assertEqual((profile.input_name, profile.output_name), ("image", "grid"))

    def test_unknown_keys_rejected(self) -> None:
        with self.assertRaises(ConfigurationError):
            load_model_profile(self._write_profile({"rows": 13}))

    def test_channel_count_must_match(self) -> None:
        with self.assertRaises(ConfigurationError):
            load_model_profile(self._write_profile({"class_count": 80, "channel_count": 125}))

    def test_anchor_count_must_match(self) -> None:
        with self.assertRaises(ConfigurationError):
            load_model_profile(self._write_profile({"boxes_per_cell": 3}))
        with self.assertRaises(ConfigurationError):
            load_model_profile(self._write_profile({"boxes_per_cell": 1, "anchors": [[1.0, 2.0, 3.0]]}))

    def test_invalid_values(self) -> None:
        with self.assertRaises(ConfigurationError):
            load_model_profile(self._write_profile({"row_count": "13"}))
        with self.assertRaises(ConfigurationError):
            load_model_profile(self._write_profile({"labels": [1, 2]}))
        with self.assertRaises(ConfigurationError):
            load_model_profile(self._write_profile({"colors": [[0, 0, 300]]}))
        with self.assertRaises(ConfigurationError):
            load_model_profile(self._write_profile({"schema_version": 2}))

    def test_invalid_json(self) -> None:
        with self.assertRaises(ConfigurationError):
            load_model_profile(self._write("profile.json", "{not json"))
        with self.assertRaises(ConfigurationError):
            load_model_profile(self._write("profile.json", "[]"))

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_model_profile(Path("/nonexistent/profile.json"))


class TestLabelFiles(unittest.TestCase):
    def _write(self, text: str) -> Path:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = Path(tmpdir.name) / "labels"
        path.write_text(text, encoding="utf-8")
        return path

    def test_plain_lines(self) -> None:
        path = self._write("aeroplane\nbicycle\n\n# comment\nbird\n")
        self.assertEqual(load_class_names(path), ["aeroplane", "bicycle", "bird"])

    def test_names_mapping_with_gap(self) -> None:
        path = self._write("task: detect\nnames:\n  0: person\n  2: 'car'\n")
        self.assertEqual(load_class_names(path), ["person", "1", "car"])

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_class_names("/nonexistent/labels.txt")


class TestColorTable(unittest.TestCase):
    def test_rotates_by_modulo(self) -> None:
        table = ColorTable()
        self.assertEqual(len(DEFAULT_PALETTE), 20)
        self.assertEqual(table.color_for(0), DEFAULT_PALETTE[0])
        self.assertEqual(table.color_for(21), DEFAULT_PALETTE[1])

    def test_custom_and_empty(self) -> None:
        table = ColorTable(((1, 2, 3), (4, 5, 6)))
        self.assertEqual(table.color_for(3), (4, 5, 6))
        self.assertEqual(ColorTable(()).color_for(7), FALLBACK_COLOR)


if __name__ == "__main__":
    unittest.main()
