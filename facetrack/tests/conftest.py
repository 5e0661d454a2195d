"""
Shared fixtures.
"""
import numpy as np
import pytest

from facetrack.inference.anchors import AnchorConfig, get_anchor_set
from facetrack.inference.decoder import Detection, RawFrameOutput
from facetrack.inference.geometry import BoundingBox


def box_at(cx: float, cy: float, size: float = 40.0) -> BoundingBox:
    """Box cuadrado centrado en (cx, cy)"""
    half = size / 2
    return BoundingBox(cx - half, cy - half, cx + half, cy + half)


def face(cx: float, cy: float, confidence: float = 0.9, size: float = 40.0) -> Detection:
    """Detection sin landmarks centrada en (cx, cy)"""
    return Detection(box=box_at(cx, cy, size), confidence=confidence)


@pytest.fixture
def small_anchor_config():
    """
    input 64, stride 32, sizes (16, 32) → grid 2×2 × 2 sizes = 8 anchors.

    Orden: (r0,c0,16) (r0,c0,32) (r0,c1,16) (r0,c1,32) (r1,c0,16) ...
    """
    return AnchorConfig(input_size=64, strides=(32,), anchor_sizes=((16, 32),))


@pytest.fixture
def small_anchors(small_anchor_config):
    return get_anchor_set(small_anchor_config)


@pytest.fixture
def empty_raw(small_anchors):
    """Factory de RawFrameOutput todo-background para los 8 anchors"""
    def _make(with_landmarks: bool = True):
        n = len(small_anchors)
        scores = np.zeros((n, 2))
        scores[:, 0] = 1.0
        return RawFrameOutput(
            boxes=np.zeros((n, 4)),
            scores=scores,
            landmarks=np.zeros((n, 10)) if with_landmarks else None,
        )
    return _make


def raw_with_faces(num_anchors: int, faces: dict, with_landmarks: bool = True) -> RawFrameOutput:
    """
    RawFrameOutput con score de cara en los anchors indicados.

    Args:
        num_anchors: Filas totales
        faces: {anchor_index: face_score} o {anchor_index: (face_score, box_regression)}
    """
    boxes = np.zeros((num_anchors, 4))
    scores = np.zeros((num_anchors, 2))
    scores[:, 0] = 1.0
    for index, value in faces.items():
        if isinstance(value, tuple):
            score, regression = value
            boxes[index] = regression
        else:
            score = value
        scores[index] = (1.0 - score, score)
    return RawFrameOutput(
        boxes=boxes,
        scores=scores,
        landmarks=np.zeros((num_anchors, 10)) if with_landmarks else None,
    )
