"""
Geometry Tests
==============

Invariantes testeadas:
1. IoU simétrico, acotado a [0, 1], identidad = 1.0
2. Boxes disjuntos o que solo se tocan → IoU exactamente 0.0
3. Union de área 0 → IoU 0.0 (sin división por cero)
4. Distancia de centros euclídea
"""
import pytest

from facetrack.inference.geometry import BoundingBox, calculate_iou, center_distance


@pytest.mark.unit
class TestIoUCalculation:
    """Tests de calculate_iou()"""

    def test_iou_perfect_match(self):
        """
        Propiedad: IoU de boxes idénticos debe ser 1.0.
        """
        box = BoundingBox(10, 10, 50, 50)

        assert calculate_iou(box, box) == pytest.approx(1.0)

    def test_iou_no_overlap(self):
        """
        Propiedad: IoU de boxes sin overlap debe ser exactamente 0.0.
        """
        left = BoundingBox(0, 0, 10, 10)
        right = BoundingBox(100, 100, 110, 110)

        assert calculate_iou(left, right) == 0.0

    def test_iou_touching_edges_is_zero(self):
        """
        Edge case: boxes que comparten un borde no tienen intersección con área.
        """
        left = BoundingBox(0, 0, 10, 10)
        right = BoundingBox(10, 0, 20, 10)

        assert calculate_iou(left, right) == 0.0

    def test_iou_partial_overlap_value(self):
        """
        Propiedad: overlap de la mitad → IoU = 50 / 150 = 1/3.
        """
        box1 = BoundingBox(0, 0, 10, 10)
        box2 = BoundingBox(5, 0, 15, 10)

        assert calculate_iou(box1, box2) == pytest.approx(1 / 3)

    def test_iou_symmetry(self):
        """
        Invariante: IoU(A, B) == IoU(B, A).
        """
        box1 = BoundingBox(0, 0, 30, 30)
        box2 = BoundingBox(10, 5, 45, 25)

        assert calculate_iou(box1, box2) == pytest.approx(calculate_iou(box2, box1))

    def test_iou_zero_area_boxes(self):
        """
        Edge case: boxes de área cero → 0.0 (no ZeroDivisionError).
        """
        point = BoundingBox(5, 5, 5, 5)

        assert calculate_iou(point, point) == 0.0


@pytest.mark.unit
class TestBoundingBox:
    """Tests de propiedades de BoundingBox"""

    def test_center_and_size(self):
        box = BoundingBox(10, 20, 30, 60)

        assert box.center == (20.0, 40.0)
        assert box.width == 20
        assert box.height == 40
        assert box.area == 800

    def test_shifted_preserves_size(self):
        box = BoundingBox(10, 10, 20, 20)

        moved = box.shifted(2, -3)

        assert moved == BoundingBox(12, 7, 22, 17)
        assert moved.width == box.width
        assert moved.height == box.height

    def test_structural_equality_and_hash(self):
        """
        Invariante: equality estructural (frozen dataclass, hashable).
        """
        assert BoundingBox(1, 2, 3, 4) == BoundingBox(1, 2, 3, 4)
        assert len({BoundingBox(1, 2, 3, 4), BoundingBox(1, 2, 3, 4)}) == 1

    def test_degenerate_detection(self):
        assert BoundingBox(5, 5, 5, 10).is_degenerate
        assert not BoundingBox(0, 0, 1, 1).is_degenerate

    def test_center_distance(self):
        a = BoundingBox(0, 0, 10, 10)   # center (5, 5)
        b = BoundingBox(3, 4, 13, 14)   # center (8, 9)

        assert center_distance(a, b) == pytest.approx(5.0)
