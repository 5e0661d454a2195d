"""
Face Tracking Pipeline
======================

Orquesta el flujo por frame:

    image → InferenceEngine → RawFrameOutput
          → FaceDetector (decode + NMS) → detections
          → TrackManager → tracks

Responsabilidad:
- Un trace_id por frame (correlación de logs)
- Validar alineación engine ↔ anchors al construir (fail fast)
- Loguear errores del engine con contexto y re-raise (sin retries)

Diseño:
- Una instancia por stream (el TrackManager no es thread-safe)
- Throttling/backpressure de frames es responsabilidad del scheduler externo
"""
from dataclasses import dataclass
import logging
from typing import Any, List, Optional, Tuple

from .inference.decoder import Detection
from .inference.detector import FaceDetector
from .inference.engine import InferenceEngine
from .logging import (
    generate_trace_id,
    log_error_with_context,
    log_tracking_stats,
    trace_context,
)
from .tracking.manager import TrackManager
from .tracking.track import TrackSnapshot


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameResult:
    """
    Resultado inmutable de un frame procesado.

    Attributes:
        frame_index: Índice del frame en el stream (desde 0)
        detections: Detecciones finales (para callers sin tracking)
        tracks: Snapshots de tracks vivos luego del update
    """
    frame_index: int
    detections: Tuple[Detection, ...]
    tracks: Tuple[TrackSnapshot, ...]


def image_size(image: Any) -> Tuple[int, int]:
    """
    (width, height) de un frame tipo numpy (shape = (H, W, ...)).

    Raises:
        ValueError: Si el frame no expone un shape 2D/3D válido
    """
    shape = getattr(image, 'shape', None)
    if shape is None or len(shape) < 2:
        raise ValueError(f"Frame must expose .shape as (height, width, ...), got {shape!r}")
    height, width = int(shape[0]), int(shape[1])
    return width, height


class FaceTrackingPipeline:
    """
    Pipeline de detección + tracking para un stream.

    Usage:
        pipeline = FaceTrackingPipeline(engine, FaceDetector(), TrackManager())
        for frame in frames:
            result = pipeline.process_frame(frame)
            render(result.tracks)
    """

    def __init__(
        self,
        engine: InferenceEngine,
        detector: FaceDetector,
        tracker: Optional[TrackManager] = None,
    ):
        """
        Args:
            engine: Engine de inferencia (colaborador externo)
            detector: FaceDetector (decode + NMS)
            tracker: TrackManager (None = solo detección)

        Raises:
            AnchorMismatchError: Si engine.num_anchors != len(detector.anchors)
        """
        detector.validate_num_anchors(engine.num_anchors)

        self.engine = engine
        self.detector = detector
        self.tracker = tracker
        self._frame_index = 0

        logger.info(
            "FaceTrackingPipeline initialized",
            extra={
                "component": "pipeline",
                "event": "pipeline_initialized",
                "engine": engine.name,
                "num_anchors": engine.num_anchors,
                "tracking_enabled": tracker is not None,
            }
        )

    @property
    def frames_processed(self) -> int:
        return self._frame_index

    def process_frame(self, image: Any) -> FrameResult:
        """
        Procesa un frame completo.

        Args:
            image: Frame (np.ndarray HxWxC)

        Returns:
            FrameResult con detecciones y tracks
        """
        frame_index = self._frame_index
        width, height = image_size(image)

        with trace_context(generate_trace_id("frame")):
            try:
                raw_output = self.engine(image)
            except Exception as e:
                log_error_with_context(
                    logger,
                    "Inference engine failed",
                    exception=e,
                    component="pipeline",
                    event="engine_error",
                    frame_index=frame_index,
                    engine=self.engine.name,
                )
                raise

            detections = self.detector.detect(raw_output, width, height)

            tracks: List[TrackSnapshot] = []
            if self.tracker is not None:
                tracks = self.tracker.update(detections)
                stats = self.tracker.get_stats()
                log_tracking_stats(
                    logger,
                    detections=len(detections),
                    active_tracks=stats['active_tracks'],
                    total_created=stats['total_created'],
                    total_lost=stats['total_lost'],
                    frame_index=frame_index,
                )

        self._frame_index += 1
        return FrameResult(
            frame_index=frame_index,
            detections=tuple(detections),
            tracks=tuple(tracks),
        )

    def close(self) -> None:
        """Libera recursos del engine"""
        self.engine.close()
        logger.info(
            "FaceTrackingPipeline closed",
            extra={
                "component": "pipeline",
                "event": "pipeline_closed",
                "frames_processed": self._frame_index,
            }
        )
