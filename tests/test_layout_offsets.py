import unittest

import numpy as np

from yolo_grid.anchors import AnchorTable
from yolo_grid.errors import ConfigurationError, ShapeError
from yolo_grid.layout import LayoutConfig, OffsetResolver


class TestLayoutConfig(unittest.TestCase):
    def test_tinyyolov2_defaults(self) -> None:
        lay = LayoutConfig()
        self.assertEqual(lay.channel_count, 125)
        self.assertEqual(lay.tensor_length, 125 * 13 * 13)
        self.assertEqual(lay.input_size, (416, 416))
        self.assertEqual(lay.box_feature_count, 5)

    def test_non_positive_values_rejected(self) -> None:
        with self.assertRaises(ConfigurationError):
            LayoutConfig(row_count=0)
        with self.assertRaises(ConfigurationError):
            LayoutConfig(cell_width=-32)
        with self.assertRaises(ConfigurationError):
            LayoutConfig(class_count=2.5)

    def test_input_size_is_width_height(self) -> None:
        lay = LayoutConfig(row_count=2, column_count=3, cell_width=10, cell_height=20)
        self.assertEqual(lay.input_size, (30, 40))


class TestOffsetResolver(unittest.TestCase):
    def setUp(self) -> None:
        # 2 rows, 3 cols, 2 anchors, 2 classes -> 7 values per anchor, 6 cells per channel
        self.layout = LayoutConfig(row_count=2, column_count=3, class_count=2, boxes_per_cell=2)
        self.resolver = OffsetResolver(self.layout)

    def test_index_formula(self) -> None:
        self.assertEqual(self.resolver.index(0, 0, 0, 0), 0)
        self.assertEqual(self.resolver.index(0, 1, 0, 0), 1)
        self.assertEqual(self.resolver.index(1, 0, 0, 0), 3)
        self.assertEqual(self.resolver.index(0, 0, 0, 1), 6)
        self.assertEqual(self.resolver.index(0, 0, 1, 0), 42)
        self.assertEqual(self.resolver.index(1, 2, 1, 4), (7 + 4) * 6 + 5)
        self.assertEqual(self.resolver.index(1, 2, 1, 6), self.layout.tensor_length - 1)

    def test_out_of_range_fails_fast(self) -> None:
        with self.assertRaises(IndexError):
            self.resolver.index(2, 0, 0, 0)
        with self.assertRaises(IndexError):
            self.resolver.index(0, 3, 0, 0)
        with self.assertRaises(IndexError):
            self.resolver.index(0, 0, 2, 0)
        with self.assertRaises(IndexError):
            self.resolver.index(0, 0, 0, 7)
        with self.assertRaises(IndexError):
            self.resolver.index(-1, 0, 0, 0)

    def test_gather_matches_index(self) -> None:
        tensor = np.arange(self.layout.tensor_length, dtype=np.float64)
        features = self.resolver.gather(tensor)
        self.assertEqual(features.shape, (2, 3, 2, 7))
        for r in range(2):
            for c in range(3):
                for a in range(2):
                    for f in range(7):
                        self.assertEqual(features[r, c, a, f], tensor[self.resolver.index(r, c, a, f)])

    def test_gather_rejects_wrong_length(self) -> None:
        with self.assertRaises(ShapeError) as ctx:
            self.resolver.gather(np.zeros(self.layout.tensor_length - 1))
        self.assertEqual(ctx.exception.expected, 84)
        self.assertEqual(ctx.exception.actual, 83)


class TestAnchorTable(unittest.TestCase):
    def test_default_has_five_pairs(self) -> None:
        anchors = AnchorTable()
        self.assertEqual(len(anchors), 5)
        self.assertEqual(anchors[2], (6.63, 11.38))
        anchors.validate_for(5)

    def test_count_mismatch(self) -> None:
        with self.assertRaises(ConfigurationError):
            AnchorTable(((1.0, 1.0),)).validate_for(2)

    def test_pair_must_have_two_values(self) -> None:
        with self.assertRaises(ConfigurationError):
            AnchorTable(((1.0, 2.0, 3.0),))
        with self.assertRaises(ConfigurationError):
            AnchorTable((1.0, 2.0))

    def test_from_flat(self) -> None:
        anchors = AnchorTable.from_flat([1.08, 1.19, 3.42, 4.41])
        self.assertEqual(anchors.pairs, ((1.08, 1.19), (3.42, 4.41)))
        with self.assertRaises(ConfigurationError):
            AnchorTable.from_flat([1.0, 2.0, 3.0])


if __name__ == "__main__":
    unittest.main()
