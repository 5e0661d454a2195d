"""
Face Detector
=============

Facade del stage decode + suppress: dueño del AnchorSet cacheado y del
confidence threshold ajustable en runtime.

Responsabilidad:
- Validar alineación anchors ↔ tensores en configuration time
- Mantener confidence_threshold clamped a [0.1, 0.9]
- detect(): decode → NMS → detecciones finales

Concurrency:
- detect() es stateless por llamada; puede ejecutarse en paralelo para
  frames independientes.
- El threshold se lee UNA vez al inicio de cada detect(). Un update
  concurrente es visible para llamadas que empiecen después.
"""

import logging
import time
from typing import List, Optional

from ..logging import log_detection_stats
from .anchors import AnchorConfig, AnchorSet, get_anchor_set
from .decoder import AnchorMismatchError, Detection, RawFrameOutput, decode_detections
from .suppression import DEFAULT_IOU_THRESHOLD, non_max_suppression


logger = logging.getLogger(__name__)


MIN_CONFIDENCE_THRESHOLD = 0.1
MAX_CONFIDENCE_THRESHOLD = 0.9
DEFAULT_CONFIDENCE_THRESHOLD = 0.5


def clamp_confidence_threshold(value: float) -> float:
    """Clamp a [MIN_CONFIDENCE_THRESHOLD, MAX_CONFIDENCE_THRESHOLD]"""
    return min(MAX_CONFIDENCE_THRESHOLD, max(MIN_CONFIDENCE_THRESHOLD, float(value)))


class FaceDetector:
    """
    Decoder + Suppression Filter sobre un AnchorSet fijo.

    Usage:
        detector = FaceDetector()
        detections = detector.detect(raw_output, image_width=1280, image_height=720)

        # Ajuste en runtime (clamped)
        detector.set_confidence_threshold(0.95)   # → 0.9
    """

    def __init__(
        self,
        anchor_config: Optional[AnchorConfig] = None,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        iou_threshold: float = DEFAULT_IOU_THRESHOLD,
        expected_num_anchors: Optional[int] = None,
    ):
        """
        Args:
            anchor_config: Configuración de anchors (None = default 640/8-16-32)
            confidence_threshold: Umbral inicial (se clampa a [0.1, 0.9])
            iou_threshold: Umbral de NMS
            expected_num_anchors: Filas que entrega el engine; si se especifica
                debe coincidir con el AnchorSet

        Raises:
            AnchorMismatchError: Si expected_num_anchors no coincide
        """
        self._anchors: AnchorSet = get_anchor_set(anchor_config or AnchorConfig())
        self._confidence_threshold = clamp_confidence_threshold(confidence_threshold)
        self.iou_threshold = iou_threshold

        if expected_num_anchors is not None:
            self.validate_num_anchors(expected_num_anchors)

        logger.info(
            "FaceDetector initialized",
            extra={
                "component": "face_detector",
                "event": "detector_initialized",
                "num_anchors": len(self._anchors),
                "confidence_threshold": self._confidence_threshold,
                "iou_threshold": self.iou_threshold,
            }
        )

    @property
    def anchors(self) -> AnchorSet:
        return self._anchors

    @property
    def confidence_threshold(self) -> float:
        return self._confidence_threshold

    @confidence_threshold.setter
    def confidence_threshold(self, value: float) -> None:
        self.set_confidence_threshold(value)

    def set_confidence_threshold(self, value: float) -> float:
        """
        Actualiza el threshold (clamped a [0.1, 0.9]).

        Returns:
            Valor efectivo luego del clamp
        """
        clamped = clamp_confidence_threshold(value)
        if clamped != value:
            logger.debug(
                f"Confidence threshold {value} clamped to {clamped}",
                extra={
                    "component": "face_detector",
                    "event": "threshold_clamped",
                    "requested": value,
                    "effective": clamped,
                }
            )
        self._confidence_threshold = clamped
        return clamped

    def validate_num_anchors(self, num_anchors: int) -> None:
        """
        Verifica que el engine produzca exactamente len(anchors) filas.

        Raises:
            AnchorMismatchError: Si no coincide (misalignment silencioso si se ignora)
        """
        if num_anchors != len(self._anchors):
            raise AnchorMismatchError(
                f"Engine produces {num_anchors} rows but anchor configuration "
                f"yields {len(self._anchors)} anchors"
            )

    def detect(
        self,
        raw_output: RawFrameOutput,
        image_width: int,
        image_height: int,
    ) -> List[Detection]:
        """
        Decode + NMS de un frame.

        Args:
            raw_output: Tensores raw del frame
            image_width: Ancho de la imagen original
            image_height: Alto de la imagen original

        Returns:
            Detecciones finales (confidence descendente)
        """
        threshold = self._confidence_threshold
        start = time.perf_counter()

        candidates = decode_detections(
            raw_output,
            self._anchors,
            confidence_threshold=threshold,
            image_width=image_width,
            image_height=image_height,
        )
        detections = non_max_suppression(candidates, self.iou_threshold)

        elapsed_ms = (time.perf_counter() - start) * 1000
        log_detection_stats(
            logger,
            candidates=len(candidates),
            detections=len(detections),
            latency_ms=elapsed_ms,
        )
        return detections
