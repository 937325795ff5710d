import unittest
import warnings

import numpy as np

from gridyolo_kit.activations import sigmoid
from gridyolo_kit.config import GridGeometry
from gridyolo_kit.decode import DecodeConfig, GridDecoder, decode


# 3 columns x 2 rows, stride 32 on both axes.
GEOMETRY = GridGeometry(grid_w=3, grid_h=2, anchors=((1.0, 1.0), (2.0, 3.0)), input_w=96, input_h=64)
LABELS = 3


def _blank(decoder: GridDecoder) -> np.ndarray:
    # Objectness -10 keeps every cell below any sensible gate.
    return np.full(decoder.expected_size, -10.0, dtype=np.float32)


def _set_cell(decoder, tensor, b, y, x, obj=5.0, txy=(0.0, 0.0), twh=(0.0, 0.0), logits=(0.0, 4.0, 0.0)):
    base = decoder.cell_offset(b, y, x)
    tensor[decoder.channel_offset(base, 0)] = txy[0]
    tensor[decoder.channel_offset(base, 1)] = txy[1]
    tensor[decoder.channel_offset(base, 2)] = twh[0]
    tensor[decoder.channel_offset(base, 3)] = twh[1]
    tensor[decoder.channel_offset(base, 4)] = obj
    for c, v in enumerate(logits):
        tensor[decoder.channel_offset(base, 5 + c)] = v


class TestGridDecoder(unittest.TestCase):
    def setUp(self) -> None:
        self.decoder = GridDecoder(GEOMETRY, LABELS, DecodeConfig(confidence_threshold=0.5, class_threshold=0.6))

    def test_offsets_follow_anchor_channel_row_col_layout(self) -> None:
        self.assertEqual(self.decoder.expected_size, 2 * 8 * 3 * 2)
        self.assertEqual(self.decoder.cell_offset(0, 0, 0), 0)
        self.assertEqual(self.decoder.cell_offset(0, 1, 2), 5)
        self.assertEqual(self.decoder.cell_offset(1, 0, 0), 48)
        self.assertEqual(self.decoder.channel_offset(5, 4), 5 + 4 * 6)

    def test_single_dominant_cell(self) -> None:
        t = _blank(self.decoder)
        _set_cell(self.decoder, t, b=1, y=1, x=2)
        dets = self.decoder.decode(t)

        self.assertEqual(len(dets), 1)
        d = dets[0]
        self.assertEqual(d.class_id, 1)
        self.assertAlmostEqual(d.confidence, sigmoid(5.0), places=6)
        self.assertAlmostEqual(d.probability, np.exp(4.0) / (np.exp(4.0) + 2.0), places=6)
        self.assertAlmostEqual(d.box.x, (2 + 0.5) * 32)
        self.assertAlmostEqual(d.box.y, (1 + 0.5) * 32)
        self.assertAlmostEqual(d.box.w, 2.0 * 32)
        self.assertAlmostEqual(d.box.h, 3.0 * 32)
        self.assertFalse(d.suppressed)

    def test_exp_width_and_offsets(self) -> None:
        t = _blank(self.decoder)
        _set_cell(self.decoder, t, b=0, y=0, x=1, txy=(2.0, -1.0), twh=(0.5, -0.25))
        d = self.decoder.decode(t)[0]
        self.assertAlmostEqual(d.box.x, (1 + sigmoid(2.0)) * 32, places=4)
        self.assertAlmostEqual(d.box.y, (0 + sigmoid(-1.0)) * 32, places=4)
        self.assertAlmostEqual(d.box.w, np.exp(0.5) * 32, places=4)
        self.assertAlmostEqual(d.box.h, np.exp(-0.25) * 32, places=4)

    def test_all_below_objectness_gate_returns_empty(self) -> None:
        self.assertEqual(self.decoder.decode(_blank(self.decoder)), [])

    def test_very_negative_objectness_decodes_without_warnings(self) -> None:
        t = np.full(self.decoder.expected_size, -1000.0)
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            self.assertEqual(self.decoder.decode(t), [])

    def test_gate_is_strict(self) -> None:
        t = _blank(self.decoder)
        # sigmoid(0) == 0.5 exactly, equal to the gate.
        _set_cell(self.decoder, t, b=0, y=0, x=0, obj=0.0, logits=(0.0, 20.0, 0.0))
        self.assertEqual(self.decoder.decode(t), [])

    def test_low_class_score_is_dropped(self) -> None:
        t = _blank(self.decoder)
        _set_cell(self.decoder, t, b=0, y=0, x=0, logits=(0.0, 0.0, 0.0))
        self.assertEqual(self.decoder.decode(t), [])

    def test_tie_picks_lowest_class_index(self) -> None:
        decoder = GridDecoder(GEOMETRY, LABELS, DecodeConfig(confidence_threshold=0.5, class_threshold=0.3))
        t = _blank(decoder)
        _set_cell(decoder, t, b=0, y=0, x=0, logits=(0.0, 6.0, 6.0))
        dets = decoder.decode(t)
        self.assertEqual(len(dets), 1)
        self.assertEqual(dets[0].class_id, 1)

    def test_scan_order_is_anchor_row_column(self) -> None:
        t = _blank(self.decoder)
        _set_cell(self.decoder, t, b=1, y=0, x=0)
        _set_cell(self.decoder, t, b=0, y=1, x=0)
        _set_cell(self.decoder, t, b=0, y=0, x=2)
        dets = self.decoder.decode(t)
        centers = [(d.box.x, d.box.y, d.box.w) for d in dets]
        self.assertEqual(
            centers,
            [(2.5 * 32, 0.5 * 32, 32.0), (0.5 * 32, 1.5 * 32, 32.0), (0.5 * 32, 0.5 * 32, 64.0)],
        )

    def test_accepts_model_output_shape(self) -> None:
        t = _blank(self.decoder)
        _set_cell(self.decoder, t, b=1, y=1, x=2)
        shaped = t.reshape(1, 2 * (5 + LABELS), 2, 3)
        self.assertEqual(len(self.decoder.decode(shaped)), 1)

    def test_length_mismatch_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.decoder.decode(np.zeros(self.decoder.expected_size - 1))

    def test_empty_label_list_rejected(self) -> None:
        with self.assertRaises(ValueError):
            GridDecoder(GEOMETRY, 0)

    def test_random_tensor_ranges(self) -> None:
        rng = np.random.default_rng(3)
        t = rng.normal(scale=3.0, size=self.decoder.expected_size)
        dets = decode(t, GEOMETRY, LABELS, confidence_threshold=0.0, class_threshold=0.0)
        self.assertGreater(len(dets), 0)
        for d in dets:
            self.assertTrue(0 <= d.class_id < LABELS)
            self.assertTrue(0.0 <= d.confidence <= 1.0)
            self.assertTrue(0.0 <= d.probability <= 1.0)
            self.assertGreaterEqual(d.box.w, 0.0)
            self.assertGreaterEqual(d.box.h, 0.0)

    def test_default_geometry_matches_tiny_yolov2_voc(self) -> None:
        geometry = GridGeometry()
        self.assertEqual(geometry.tensor_size(20), 125 * 13 * 13)
        self.assertEqual(geometry.stride_x, 32.0)
        self.assertEqual(geometry.stride_y, 32.0)


if __name__ == "__main__":
    unittest.main()
