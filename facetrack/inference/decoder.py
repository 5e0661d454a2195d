"""
Detection Decoder
=================

Convierte los tensores raw de un frame (regresión de box, scores, landmarks)
en detecciones calibradas en píxeles de la imagen original.

Pipeline por anchor i (vectorizado con NumPy sobre todos los anchors):
1. confidence = scores[i][1] (face); skip si NO es > threshold (comparación estricta)
2. Box decode con variances fijas v = [0.1, 0.1, 0.2, 0.2]:
       cx = a.cx + reg[0]*v[0]*a.sx        w = a.sx * exp(reg[2]*v[2])
       cy = a.cy + reg[1]*v[1]*a.sy        h = a.sy * exp(reg[3]*v[3])
3. Escala a píxeles y clamp independiente por coordenada a [0, dimension]
4. Descarta boxes degenerados (width <= 0 o height <= 0) - filtrado silencioso
5. Landmarks (si el tensor existe): 5 puntos con variances v[0], v[1]

Output en orden ascendente de índice de anchor (sin sorting en esta etapa).

Design:
- Sin side effects (pure function de inputs)
- Validación de shapes en la frontera (AnchorMismatchError)
- Per-detection filtering es control flow normal, nunca excepción
"""

from dataclasses import dataclass
import logging
from typing import List, Optional, Tuple

import numpy as np

from .anchors import AnchorSet
from .geometry import BoundingBox


logger = logging.getLogger(__name__)


VARIANCES: Tuple[float, float, float, float] = (0.1, 0.1, 0.2, 0.2)
NUM_LANDMARKS = 5

Landmark = Tuple[float, float]


class AnchorMismatchError(ValueError):
    """Los tensores raw no están alineados con la lista de anchors."""


@dataclass(frozen=True)
class Detection:
    """
    Detección de cara inmutable en píxeles absolutos.

    Equality es estructural (box, confidence, landmarks).

    Attributes:
        box: BoundingBox en píxeles de la imagen original
        confidence: Probabilidad de cara [0.0, 1.0]
        landmarks: 5 puntos (x, y) en píxeles, o None si no se emitieron
    """
    box: BoundingBox
    confidence: float
    landmarks: Optional[Tuple[Landmark, ...]] = None


@dataclass(frozen=True, eq=False)
class RawFrameOutput:
    """
    Salida raw de la red para un frame, alineada por índice con los anchors.

    Attributes:
        boxes: (N, 4) regresión de box
        scores: (N, 2) scores [background, face]
        landmarks: (N, 10) regresión de landmarks, o None
    """
    boxes: np.ndarray
    scores: np.ndarray
    landmarks: Optional[np.ndarray] = None

    def __post_init__(self):
        boxes = _as_matrix(self.boxes, 4, "boxes")
        scores = _as_matrix(self.scores, 2, "scores")
        if boxes.shape[0] != scores.shape[0]:
            raise AnchorMismatchError(
                f"boxes and scores must have the same length: "
                f"{boxes.shape[0]} != {scores.shape[0]}"
            )
        object.__setattr__(self, 'boxes', boxes)
        object.__setattr__(self, 'scores', scores)

        if self.landmarks is not None:
            landmarks = _as_matrix(self.landmarks, 2 * NUM_LANDMARKS, "landmarks")
            if landmarks.shape[0] != boxes.shape[0]:
                raise AnchorMismatchError(
                    f"landmarks and boxes must have the same length: "
                    f"{landmarks.shape[0]} != {boxes.shape[0]}"
                )
            object.__setattr__(self, 'landmarks', landmarks)

    def __len__(self) -> int:
        return self.boxes.shape[0]

    @classmethod
    def from_tensors(
        cls,
        boxes,
        scores,
        landmarks=None,
    ) -> 'RawFrameOutput':
        """
        Construye desde los tensores tal como los entrega el engine.

        Acepta shapes con batch dim de tamaño 1 ([1, N, k]) y la remueve.
        Los arrays se copian para que el frame quede capturado antes del
        decode (sin lecturas parciales si el engine reutiliza buffers).
        """
        return cls(
            boxes=_squeeze_batch(boxes).copy(),
            scores=_squeeze_batch(scores).copy(),
            landmarks=None if landmarks is None else _squeeze_batch(landmarks).copy(),
        )


def _squeeze_batch(tensor) -> np.ndarray:
    array = np.asarray(tensor)
    if array.ndim == 3:
        if array.shape[0] != 1:
            raise AnchorMismatchError(
                f"Only batch size 1 is supported, got tensor of shape {array.shape}"
            )
        array = array[0]
    return array


def _as_matrix(tensor, columns: int, name: str) -> np.ndarray:
    array = np.asarray(tensor, dtype=np.float64)
    if array.ndim != 2 or array.shape[1] != columns:
        raise AnchorMismatchError(
            f"{name} must have shape [num_anchors, {columns}], got {array.shape}"
        )
    return array


def decode_detections(
    raw_output: RawFrameOutput,
    anchors: AnchorSet,
    confidence_threshold: float,
    image_width: int,
    image_height: int,
) -> List[Detection]:
    """
    Decodifica un frame de salida raw a detecciones en píxeles.

    Args:
        raw_output: Tensores raw del frame (alineados con anchors)
        anchors: AnchorSet de la configuración activa
        confidence_threshold: Umbral estricto (confidence > threshold)
        image_width: Ancho de la imagen original (píxeles)
        image_height: Alto de la imagen original (píxeles)

    Returns:
        Lista de Detection en orden ascendente de índice de anchor

    Raises:
        AnchorMismatchError: Si len(raw_output) != len(anchors)
    """
    if len(raw_output) != len(anchors):
        raise AnchorMismatchError(
            f"Raw output has {len(raw_output)} rows but anchor set has {len(anchors)} anchors"
        )

    confidences = raw_output.scores[:, 1]
    candidate_idx = np.flatnonzero(confidences > confidence_threshold)
    if candidate_idx.size == 0:
        return []

    priors = anchors.priors[candidate_idx]
    reg = raw_output.boxes[candidate_idx]

    v0, v1, v2, v3 = VARIANCES
    cx = priors[:, 0] + reg[:, 0] * v0 * priors[:, 2]
    cy = priors[:, 1] + reg[:, 1] * v1 * priors[:, 3]
    w = priors[:, 2] * np.exp(reg[:, 2] * v2)
    h = priors[:, 3] * np.exp(reg[:, 3] * v3)

    left = np.clip((cx - w / 2) * image_width, 0, image_width)
    top = np.clip((cy - h / 2) * image_height, 0, image_height)
    right = np.clip((cx + w / 2) * image_width, 0, image_width)
    bottom = np.clip((cy + h / 2) * image_height, 0, image_height)

    valid = ((right - left) > 0) & ((bottom - top) > 0)

    landmark_points = None
    if raw_output.landmarks is not None:
        landmark_points = _decode_landmarks(
            raw_output.landmarks[candidate_idx], priors, image_width, image_height
        )

    detections: List[Detection] = []
    for k in np.flatnonzero(valid):
        landmarks = None
        if landmark_points is not None:
            landmarks = tuple(
                (float(x), float(y)) for x, y in landmark_points[k]
            )
        detections.append(Detection(
            box=BoundingBox(
                left=float(left[k]),
                top=float(top[k]),
                right=float(right[k]),
                bottom=float(bottom[k]),
            ),
            confidence=float(confidences[candidate_idx[k]]),
            landmarks=landmarks,
        ))

    degenerate = int(candidate_idx.size - len(detections))
    if degenerate:
        logger.debug(
            f"Discarded {degenerate} degenerate boxes",
            extra={
                "component": "detection_decoder",
                "event": "degenerate_boxes_filtered",
                "count": degenerate,
            }
        )

    return detections


def _decode_landmarks(
    landmarks: np.ndarray,
    priors: np.ndarray,
    image_width: int,
    image_height: int,
) -> np.ndarray:
    """
    Decodifica landmarks (M, 10) → (M, 5, 2) en píxeles, clamp por eje.
    """
    points = landmarks.reshape(-1, NUM_LANDMARKS, 2)
    v0, v1 = VARIANCES[0], VARIANCES[1]

    x = priors[:, 0:1] + points[:, :, 0] * v0 * priors[:, 2:3]
    y = priors[:, 1:2] + points[:, :, 1] * v1 * priors[:, 3:4]

    decoded = np.empty_like(points)
    decoded[:, :, 0] = np.clip(x * image_width, 0, image_width)
    decoded[:, :, 1] = np.clip(y * image_height, 0, image_height)
    return decoded
