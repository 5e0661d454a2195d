"""
Inference Engine - Anchors, Decoding, Suppression
"""
from .anchors import (
    Anchor,
    AnchorConfig,
    AnchorConfigurationError,
    AnchorSet,
    generate_anchors,
    get_anchor_set,
)
from .decoder import (
    AnchorMismatchError,
    Detection,
    RawFrameOutput,
    VARIANCES,
    decode_detections,
)
from .detector import FaceDetector, clamp_confidence_threshold
from .engine import InferenceEngine
from .geometry import BoundingBox, calculate_iou, center_distance
from .suppression import non_max_suppression

__all__ = [
    # Anchors
    "Anchor",
    "AnchorConfig",
    "AnchorConfigurationError",
    "AnchorSet",
    "generate_anchors",
    "get_anchor_set",
    # Decoding
    "AnchorMismatchError",
    "Detection",
    "RawFrameOutput",
    "VARIANCES",
    "decode_detections",
    # Suppression
    "non_max_suppression",
    # Facade
    "FaceDetector",
    "clamp_confidence_threshold",
    "InferenceEngine",
    # Geometry
    "BoundingBox",
    "calculate_iou",
    "center_distance",
]
