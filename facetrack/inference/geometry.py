"""
Box Geometry Module
===================

Bounded Context: Shape Algebra (operaciones sobre cajas 2D en píxeles)

This module contains pure geometric operations for face bounding boxes:
- BoundingBox dataclass with immutable geometry (left, top, right, bottom)
- Property computations: width, height, area, center
- Spatial metrics: IoU (Intersection over Union), center distance

Design:
- Pure functions (no side effects)
- Immutable data structures (frozen dataclass, hashable)
- Structural equality (two boxes with same corners are equal)
- Zero external dependencies except numpy for array export
"""

from dataclasses import dataclass
import math
from typing import Tuple

import numpy as np


@dataclass(frozen=True)
class BoundingBox:
    """
    Bounding box inmutable, alineado a ejes, en píxeles absolutos.

    Attributes:
        left, top: Top-left corner
        right, bottom: Bottom-right corner
    """
    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def center(self) -> Tuple[float, float]:
        """Centro (x, y) del box"""
        return ((self.left + self.right) / 2.0, (self.top + self.bottom) / 2.0)

    @property
    def is_degenerate(self) -> bool:
        """True si width <= 0 o height <= 0 (box sin área)"""
        return self.width <= 0 or self.height <= 0

    @property
    def xyxy(self) -> np.ndarray:
        """Formato supervision-compatible: [x1, y1, x2, y2]"""
        return np.array([self.left, self.top, self.right, self.bottom], dtype=np.float32)

    def shifted(self, dx: float, dy: float) -> 'BoundingBox':
        """
        Traslada el box sin cambiar su tamaño.

        Args:
            dx: Desplazamiento horizontal (píxeles)
            dy: Desplazamiento vertical (píxeles)

        Returns:
            Nuevo BoundingBox trasladado
        """
        return BoundingBox(
            left=self.left + dx,
            top=self.top + dy,
            right=self.right + dx,
            bottom=self.bottom + dy,
        )

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.left, self.top, self.right, self.bottom)


def calculate_iou(box1: BoundingBox, box2: BoundingBox) -> float:
    """
    Calcula Intersection over Union (IoU) entre dos bounding boxes.

    Properties (matemáticas):
    - Simetría: IoU(A, B) = IoU(B, A)
    - Bounded: 0.0 <= IoU <= 1.0
    - Identidad: IoU(A, A) = 1.0 (si A tiene área)
    - Disjoint: IoU(A, B) = 0.0 si no hay overlap

    Args:
        box1: BoundingBox en píxeles
        box2: BoundingBox en píxeles

    Returns:
        IoU score [0.0, 1.0]

    Edge cases:
        - Boxes que solo se tocan en un borde (intersección sin área) → 0.0
        - Union de área 0 → 0.0 (evita división por cero)
    """
    inter_left = max(box1.left, box2.left)
    inter_top = max(box1.top, box2.top)
    inter_right = min(box1.right, box2.right)
    inter_bottom = min(box1.bottom, box2.bottom)

    if inter_left >= inter_right or inter_top >= inter_bottom:
        return 0.0

    inter_area = (inter_right - inter_left) * (inter_bottom - inter_top)
    union_area = box1.area + box2.area - inter_area

    if union_area <= 0:
        return 0.0

    return inter_area / union_area


def center_distance(box1: BoundingBox, box2: BoundingBox) -> float:
    """Distancia euclídea entre los centros de dos boxes (píxeles)"""
    cx1, cy1 = box1.center
    cx2, cy2 = box2.center
    return math.hypot(cx1 - cx2, cy1 - cy2)
