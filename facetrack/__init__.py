"""
FaceTrack - Anchor Decoding + Multi-Face Tracking
==================================================

Convierte la salida raw de un detector de caras anchor-based en detecciones
calibradas y tracks con identidad persistente a lo largo de un stream.

Public API:
- generate_anchors / FaceDetector: decode + NMS
- TrackManager: asociación + lifecycle de tracks
- FaceTrackingPipeline: engine → detector → tracker por frame
- FaceTrackConfig: configuración validada (YAML)

Usage:
    from facetrack import FaceTrackConfig, build_pipeline

    config = FaceTrackConfig.from_yaml("config/facetrack/config.yaml")
    pipeline = build_pipeline(config, engine=my_engine)
    result = pipeline.process_frame(frame)
"""

__version__ = "1.0.0"

from .config import FaceTrackConfig
from .factories import build_detector, build_pipeline, build_tracker, configure_logging
from .inference import (
    AnchorMismatchError,
    BoundingBox,
    Detection,
    FaceDetector,
    InferenceEngine,
    RawFrameOutput,
    decode_detections,
    generate_anchors,
    non_max_suppression,
)
from .pipeline import FaceTrackingPipeline, FrameResult
from .tracking import TrackManager, TrackSnapshot, TrackState

__all__ = [
    # Config
    "FaceTrackConfig",
    # Factories
    "build_detector",
    "build_tracker",
    "build_pipeline",
    "configure_logging",
    # Inference
    "AnchorMismatchError",
    "BoundingBox",
    "Detection",
    "FaceDetector",
    "InferenceEngine",
    "RawFrameOutput",
    "decode_detections",
    "generate_anchors",
    "non_max_suppression",
    # Tracking
    "TrackManager",
    "TrackSnapshot",
    "TrackState",
    # Pipeline
    "FaceTrackingPipeline",
    "FrameResult",
]
