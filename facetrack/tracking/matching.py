"""
Track ↔ Detection Matching Strategies
=====================================

Bounded Context: Spatial Matching (asociación frame a frame)

Strategies disponibles:
- GreedyNearestCenterMatcher (default): cada track, en orden del tracker,
  toma la detección restante más cercana a su posición predicha.
  Order-dependent: dos tracks pueden competir por una detección y el que
  se itera primero siempre gana, aunque otro esté más cerca.
- OptimalAssignmentMatcher: asignación de costo mínimo total
  (scipy.optimize.linear_sum_assignment) con el mismo cap de distancia.

Ambas respetan el cap duro: una detección a distancia >= max_distance del
track nunca se asigna.

Design Philosophy:
- Strategy pattern: el lifecycle del TrackManager no cambia al swapear
- Testable (cada strategy independientemente)
"""

from abc import ABC, abstractmethod
import logging
from typing import Dict, List, Sequence

import numpy as np
from scipy.optimize import linear_sum_assignment

from ..inference.decoder import Detection
from ..inference.geometry import BoundingBox, center_distance


logger = logging.getLogger(__name__)


DEFAULT_MAX_TRACKING_DISTANCE = 150.0


class MatchingStrategy(ABC):
    """
    Base abstracta para estrategias de matching.

    Contract:
        match() recibe la posición predicha de cada track (en el orden
        interno del tracker) y las detecciones del frame; retorna
        {track_index: detection_index}. Cada detección se asigna a lo sumo
        a un track.
    """

    def __init__(self, max_distance: float = DEFAULT_MAX_TRACKING_DISTANCE):
        self.max_distance = max_distance

    @abstractmethod
    def match(
        self,
        predicted_boxes: Sequence[BoundingBox],
        detections: Sequence[Detection],
    ) -> Dict[int, int]:
        """
        Asocia tracks con detecciones.

        Args:
            predicted_boxes: Box predicho por track (orden del tracker)
            detections: Detecciones del frame actual

        Returns:
            Mapping track_index → detection_index
        """
        pass

    def get_name(self) -> str:
        """Nombre de la strategy (para logging/debugging)."""
        return self.__class__.__name__


class GreedyNearestCenterMatcher(MatchingStrategy):
    """
    Nearest-neighbor greedy, order-dependent.

    Para cada track en orden: escanea las detecciones aún no matcheadas
    (en orden de entrada) y se queda con la de menor distancia de centro,
    siempre que sea < max_distance. Empates: gana la primera encontrada.
    """

    def match(
        self,
        predicted_boxes: Sequence[BoundingBox],
        detections: Sequence[Detection],
    ) -> Dict[int, int]:
        unmatched: List[int] = list(range(len(detections)))
        assignments: Dict[int, int] = {}

        for track_idx, predicted in enumerate(predicted_boxes):
            best_idx = None
            best_distance = float("inf")

            for det_idx in unmatched:
                distance = center_distance(predicted, detections[det_idx].box)
                if distance < best_distance and distance < self.max_distance:
                    best_distance = distance
                    best_idx = det_idx

            if best_idx is not None:
                assignments[track_idx] = best_idx
                unmatched.remove(best_idx)

        return assignments


class OptimalAssignmentMatcher(MatchingStrategy):
    """
    Asignación global de costo mínimo (Hungarian) sobre distancias de centro.

    Pares con distancia >= max_distance se penalizan en la matriz de costo y
    se descartan luego de la asignación, así que el cap es idéntico al greedy.
    """

    def match(
        self,
        predicted_boxes: Sequence[BoundingBox],
        detections: Sequence[Detection],
    ) -> Dict[int, int]:
        if not predicted_boxes or not detections:
            return {}

        track_centers = np.array([box.center for box in predicted_boxes], dtype=np.float64)
        det_centers = np.array([d.box.center for d in detections], dtype=np.float64)

        # (T, D) matriz de distancias euclídeas
        diff = track_centers[:, None, :] - det_centers[None, :, :]
        distances = np.sqrt((diff ** 2).sum(axis=2))

        gated = distances >= self.max_distance
        cost = distances.copy()
        # Costo finito y mayor que cualquier par válido
        cost[gated] = self.max_distance * (len(predicted_boxes) + len(detections) + 1)

        rows, cols = linear_sum_assignment(cost)
        return {
            int(r): int(c)
            for r, c in zip(rows, cols)
            if not gated[r, c]
        }


def create_matching_strategy(mode: str, max_distance: float) -> MatchingStrategy:
    """
    Factory: crea strategy de matching.

    Args:
        mode: 'greedy' | 'optimal'
        max_distance: Cap de distancia (píxeles)

    Raises:
        ValueError: Si mode inválido
    """
    mode = mode.lower()
    if mode == 'greedy':
        strategy: MatchingStrategy = GreedyNearestCenterMatcher(max_distance=max_distance)
    elif mode == 'optimal':
        strategy = OptimalAssignmentMatcher(max_distance=max_distance)
    else:
        raise ValueError(
            f"Invalid matching mode: '{mode}'. Supported: 'greedy', 'optimal'"
        )

    logger.debug(
        "Matching strategy created",
        extra={
            "component": "matching_strategy",
            "event": "strategy_created",
            "strategy": strategy.get_name(),
            "max_distance": max_distance,
        }
    )
    return strategy
