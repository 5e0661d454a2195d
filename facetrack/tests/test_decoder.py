"""
Detection Decoder Tests
=======================

Invariantes testeadas:
1. Identity decode: regresión [0,0,0,0] → centro y tamaño del anchor
2. Threshold estricto: confidence == threshold se excluye
3. Clamp independiente por coordenada a [0, dimension]
4. Boxes degenerados se filtran silenciosamente
5. Landmarks decodificados con variances v[0], v[1]; None si no hay tensor
6. Output en orden ascendente de anchor
7. Tensores desalineados → AnchorMismatchError
"""
import math

import numpy as np
import pytest

from facetrack.inference.decoder import (
    AnchorMismatchError,
    Detection,
    RawFrameOutput,
    decode_detections,
)
from facetrack.inference.geometry import BoundingBox

from .conftest import raw_with_faces


WIDTH, HEIGHT = 640, 480


@pytest.mark.unit
class TestBoxDecoding:
    """Tests de decode de boxes"""

    def test_identity_decode(self, small_anchors):
        """
        Invariante: reg = [0,0,0,0] → centro = anchor center, tamaño = anchor size.

        Anchor 0: cx=cy=0.25, s=0.25 → (80, 60, 240, 180) en 640×480
        """
        raw = raw_with_faces(len(small_anchors), {0: 0.9})

        detections = decode_detections(raw, small_anchors, 0.5, WIDTH, HEIGHT)

        assert len(detections) == 1
        box = detections[0].box
        assert box.center == pytest.approx((0.25 * WIDTH, 0.25 * HEIGHT))
        assert box.width == pytest.approx(0.25 * WIDTH)
        assert box.height == pytest.approx(0.25 * HEIGHT)
        assert detections[0].confidence == pytest.approx(0.9)

    def test_regression_applies_variances(self, small_anchors):
        """
        Propiedad: cx += reg0*0.1*sx, w = sx*exp(reg2*0.2).
        """
        regression = (1.0, -2.0, 1.0, 0.5)
        raw = raw_with_faces(len(small_anchors), {6: (0.8, regression)})  # cx=0.75 cy=0.75 s=0.25

        box = decode_detections(raw, small_anchors, 0.5, 1000, 1000)[0].box

        cx = 0.75 + 1.0 * 0.1 * 0.25
        cy = 0.75 + -2.0 * 0.1 * 0.25
        w = 0.25 * math.exp(1.0 * 0.2)
        h = 0.25 * math.exp(0.5 * 0.2)
        assert box.center == pytest.approx((cx * 1000, cy * 1000))
        assert box.width == pytest.approx(w * 1000)
        assert box.height == pytest.approx(h * 1000)

    def test_confidence_equal_to_threshold_is_excluded(self, small_anchors):
        """
        Invariante: comparación estricta (>), no >=.
        """
        raw = raw_with_faces(len(small_anchors), {0: 0.5, 2: 0.51})

        detections = decode_detections(raw, small_anchors, 0.5, WIDTH, HEIGHT)

        assert [d.confidence for d in detections] == [pytest.approx(0.51)]

    def test_coordinates_clamped_to_image(self, small_anchors):
        """
        Invariante: box que excede la imagen se clampa por coordenada.

        Anchor 1: cx=cy=0.25, s=0.5 → normalizado (0.0, 0.0, 0.5, 0.5);
        con reg2=reg3=5 crece a exp(1)*0.5 ≈ 1.36 → left/top negativos
        """
        raw = raw_with_faces(len(small_anchors), {1: (0.9, (0.0, 0.0, 5.0, 5.0))})

        box = decode_detections(raw, small_anchors, 0.5, WIDTH, HEIGHT)[0].box

        assert box.left == 0.0
        assert box.top == 0.0
        assert box.right <= WIDTH
        assert box.bottom <= HEIGHT

    def test_degenerate_box_silently_filtered(self, small_anchors):
        """
        Invariante: box totalmente fuera de la imagen → width 0 tras clamp → descartado.
        """
        raw = raw_with_faces(len(small_anchors), {
            0: (0.9, (-100.0, 0.0, 0.0, 0.0)),  # cx muy negativo
            2: 0.8,
        })

        detections = decode_detections(raw, small_anchors, 0.5, WIDTH, HEIGHT)

        assert len(detections) == 1
        assert detections[0].confidence == pytest.approx(0.8)

    def test_output_in_anchor_index_order(self, small_anchors):
        """
        Invariante: sin sorting en decode (orden ascendente de anchor).
        """
        raw = raw_with_faces(len(small_anchors), {7: 0.95, 0: 0.6, 4: 0.99})

        detections = decode_detections(raw, small_anchors, 0.5, WIDTH, HEIGHT)

        assert [d.confidence for d in detections] == pytest.approx([0.6, 0.99, 0.95])

    def test_no_candidates_returns_empty(self, small_anchors, empty_raw):
        assert decode_detections(empty_raw(), small_anchors, 0.5, WIDTH, HEIGHT) == []


@pytest.mark.unit
class TestLandmarkDecoding:
    """Tests de decode de landmarks"""

    def test_zero_regression_places_points_at_anchor_center(self, small_anchors):
        raw = raw_with_faces(len(small_anchors), {0: 0.9})

        landmarks = decode_detections(raw, small_anchors, 0.5, WIDTH, HEIGHT)[0].landmarks

        assert len(landmarks) == 5
        for x, y in landmarks:
            assert (x, y) == pytest.approx((0.25 * WIDTH, 0.25 * HEIGHT))

    def test_landmark_regression_and_clamp(self, small_anchors):
        """
        Punto k: x = cx + reg[2k]*0.1*sx, y = cy + reg[2k+1]*0.1*sy, clamp por eje.
        """
        raw = raw_with_faces(len(small_anchors), {0: 0.9})
        raw.landmarks[0] = [2.0, 0.0, 0.0, -4.0, -100.0, 0.0, 0.0, 100.0, 0.0, 0.0]

        landmarks = decode_detections(raw, small_anchors, 0.5, WIDTH, HEIGHT)[0].landmarks

        assert landmarks[0] == pytest.approx(((0.25 + 2.0 * 0.1 * 0.25) * WIDTH, 0.25 * HEIGHT))
        assert landmarks[1] == pytest.approx((0.25 * WIDTH, (0.25 - 4.0 * 0.1 * 0.25) * HEIGHT))
        assert landmarks[2] == pytest.approx((0.0, 0.25 * HEIGHT))       # x clamped a 0
        assert landmarks[3] == pytest.approx((0.25 * WIDTH, HEIGHT))     # y clamped a height

    def test_missing_landmark_tensor_yields_none(self, small_anchors):
        raw = raw_with_faces(len(small_anchors), {0: 0.9}, with_landmarks=False)

        detection = decode_detections(raw, small_anchors, 0.5, WIDTH, HEIGHT)[0]

        assert detection.landmarks is None


@pytest.mark.unit
class TestRawFrameOutput:
    """Validación de shapes en la frontera"""

    def test_anchor_count_mismatch_rejected(self, small_anchors):
        raw = raw_with_faces(len(small_anchors) - 1, {0: 0.9})

        with pytest.raises(AnchorMismatchError):
            decode_detections(raw, small_anchors, 0.5, WIDTH, HEIGHT)

    def test_wrong_column_count_rejected(self):
        with pytest.raises(AnchorMismatchError):
            RawFrameOutput(boxes=np.zeros((8, 3)), scores=np.zeros((8, 2)))

    def test_boxes_scores_length_mismatch_rejected(self):
        with pytest.raises(AnchorMismatchError):
            RawFrameOutput(boxes=np.zeros((8, 4)), scores=np.zeros((7, 2)))

    def test_from_tensors_squeezes_batch_dimension(self):
        raw = RawFrameOutput.from_tensors(
            np.zeros((1, 8, 4)), np.zeros((1, 8, 2)), np.zeros((1, 8, 10))
        )

        assert len(raw) == 8
        assert raw.landmarks.shape == (8, 10)

    def test_from_tensors_copies_engine_buffers(self):
        """
        Propiedad: el frame queda capturado; mutar el buffer del engine no afecta.
        """
        scores = np.zeros((1, 8, 2))
        raw = RawFrameOutput.from_tensors(np.zeros((1, 8, 4)), scores)

        scores[0, 0, 1] = 0.99

        assert raw.scores[0, 1] == 0.0

    def test_batch_size_greater_than_one_rejected(self):
        with pytest.raises(AnchorMismatchError):
            RawFrameOutput.from_tensors(np.zeros((2, 8, 4)), np.zeros((2, 8, 2)))


@pytest.mark.unit
class TestDetectionValue:
    """Detection es un valor inmutable con equality estructural"""

    def test_structural_equality(self):
        a = Detection(BoundingBox(0, 0, 10, 10), 0.9, ((1.0, 2.0),) * 5)
        b = Detection(BoundingBox(0, 0, 10, 10), 0.9, ((1.0, 2.0),) * 5)
        c = Detection(BoundingBox(0, 0, 10, 10), 0.9, None)

        assert a == b
        assert a != c
        assert hash(a) == hash(b)
