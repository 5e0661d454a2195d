"""
Suppression Filter (Non-Maximum Suppression)
============================================

Remueve detecciones redundantes que se superponen, quedándose con la de
mayor confianza de cada grupo.

Algoritmo (greedy, determinístico):
1. Sort por confidence descendente (STABLE: empates preservan orden original)
2. Recorrer la lista ordenada; mantener una detección solo si su IoU contra
   TODAS las ya mantenidas es < iou_threshold

Tie-break policy:
    El sort estable es parte del contrato. Con un sort inestable, cuál de
    dos boxes superpuestos con igual score sobrevive dejaría de ser
    determinístico.
"""

import logging
from typing import List, Sequence

from .decoder import Detection
from .geometry import calculate_iou


logger = logging.getLogger(__name__)


DEFAULT_IOU_THRESHOLD = 0.4


def _suppresses(kept: Detection, candidate: Detection, iou_threshold: float) -> bool:
    """
    True si `kept` vuelve redundante a `candidate` (IoU >= threshold).

    Boxes sin overlap (IoU == 0) nunca se suprimen, aun con threshold 0.
    """
    iou = calculate_iou(kept.box, candidate.box)
    return iou > 0.0 and iou >= iou_threshold


def non_max_suppression(
    detections: Sequence[Detection],
    iou_threshold: float = DEFAULT_IOU_THRESHOLD,
) -> List[Detection]:
    """
    Aplica NMS greedy sobre una lista de detecciones.

    Args:
        detections: Detecciones candidatas (cualquier orden)
        iou_threshold: IoU a partir del cual una detección se considera redundante

    Returns:
        Detecciones sobrevivientes, en orden de confidence descendente

    Example:
        >>> kept = non_max_suppression([high, duplicate_of_high, far_away])
        >>> kept == [high, far_away]
        True
    """
    if not detections:
        return []

    # sorted() es estable también con reverse=True
    ordered = sorted(detections, key=lambda d: d.confidence, reverse=True)

    kept: List[Detection] = []
    for candidate in ordered:
        if not any(_suppresses(other, candidate, iou_threshold) for other in kept):
            kept.append(candidate)

    logger.debug(
        f"NMS: {len(detections)} candidates → {len(kept)} kept",
        extra={
            "component": "suppression_filter",
            "event": "nms_applied",
            "candidates": len(detections),
            "kept": len(kept),
            "iou_threshold": iou_threshold,
        }
    )
    return kept
