"""
Component Factories
===================

Construye detector, tracker y pipeline desde FaceTrackConfig validado.

Diseño:
- Factory centraliza decisiones de construcción
- Validación ya ocurrió en Pydantic (configuration time)
"""
import logging
from typing import Optional

from .config import FaceTrackConfig
from .inference.detector import FaceDetector
from .inference.engine import InferenceEngine
from .logging import setup_logging
from .pipeline import FaceTrackingPipeline
from .tracking.manager import TrackManager
from .tracking.matching import create_matching_strategy


logger = logging.getLogger(__name__)


def configure_logging(config: FaceTrackConfig) -> logging.Handler:
    """Instala el JSON logging según config.logging"""
    settings = config.logging
    return setup_logging(
        level=settings.level,
        indent=settings.json_indent,
        log_file=settings.file,
        max_bytes=settings.max_bytes,
        backup_count=settings.backup_count,
    )


def build_detector(config: FaceTrackConfig) -> FaceDetector:
    """FaceDetector con anchors, threshold y NMS de la configuración"""
    return FaceDetector(
        anchor_config=config.anchors.to_anchor_config(),
        confidence_threshold=config.detection.confidence_threshold,
        iou_threshold=config.suppression.iou_threshold,
        expected_num_anchors=config.detection.expected_num_anchors,
    )


def build_tracker(config: FaceTrackConfig) -> TrackManager:
    """TrackManager con la strategy de matching configurada"""
    settings = config.tracking
    strategy = create_matching_strategy(settings.matching, settings.max_tracking_distance)
    return TrackManager(
        max_tracking_distance=settings.max_tracking_distance,
        max_missed_frames=settings.max_missed_frames,
        min_confidence_for_new_track=settings.min_confidence_for_new_track,
        history_size=settings.history_size,
        matching_strategy=strategy,
    )


def build_pipeline(
    config: FaceTrackConfig,
    engine: InferenceEngine,
    enable_tracking: bool = True,
) -> FaceTrackingPipeline:
    """
    Construye el pipeline completo.

    Args:
        config: Configuración validada
        engine: Engine de inferencia
        enable_tracking: False = solo decode + NMS

    Raises:
        AnchorMismatchError: Si el engine no está alineado con los anchors
    """
    logger.info(
        "Building pipeline",
        extra={
            "component": "factories",
            "event": "pipeline_build_start",
            "matching": config.tracking.matching,
            "tracking_enabled": enable_tracking,
        }
    )
    tracker: Optional[TrackManager] = build_tracker(config) if enable_tracking else None
    return FaceTrackingPipeline(engine, build_detector(config), tracker)
