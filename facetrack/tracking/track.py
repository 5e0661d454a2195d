"""
Track State
===========

Estado de tracking para una cara persistente entre frames.

Lifecycle:
1. NEW → ACTIVE: Creado desde una detección no matcheada (con primer update)
2. ACTIVE: Matcheado en el frame actual (missed_frames = 0)
3. STALE: Sin match, dentro de la tolerancia (0 < missed_frames <= max)
4. Superó la tolerancia: removido del live set (sin resurrección, no hay
   snapshot de un track removido)

El Track es mutable y privado del TrackManager. Los callers reciben
TrackSnapshot (inmutable) luego de cada update.
"""

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, Tuple

from ..inference.decoder import Detection
from ..inference.geometry import BoundingBox


DEFAULT_HISTORY_SIZE = 10


class TrackState(str, Enum):
    ACTIVE = "active"
    STALE = "stale"


@dataclass(frozen=True)
class TrackSnapshot:
    """
    Vista read-only de un track luego de un update.

    Attributes:
        track_id: ID único dentro del TrackManager (nunca se reutiliza)
        detection: Detección actual
        history: Boxes recientes, del más viejo al más nuevo (<= history_size)
        missed_frames: Frames consecutivos sin match
        state: ACTIVE (matcheado en este frame) o STALE (sin match, tolerado)
    """
    track_id: int
    detection: Detection
    history: Tuple[BoundingBox, ...]
    missed_frames: int
    state: TrackState

    @property
    def box(self) -> BoundingBox:
        return self.detection.box

    @property
    def confidence(self) -> float:
        return self.detection.confidence

    @property
    def is_stale(self) -> bool:
        """True si el track no fue matcheado en el último frame"""
        return self.missed_frames > 0


class Track:
    """
    Track mutable con historial acotado de posiciones.

    Attributes:
        track_id: ID único
        detection: Última detección matcheada
        history: deque(maxlen=history_size), evicta el más viejo primero
        missed_frames: Frames consecutivos sin match
        state: TrackState
    """

    def __init__(
        self,
        track_id: int,
        detection: Detection,
        history_size: int = DEFAULT_HISTORY_SIZE,
    ):
        self.track_id = track_id
        self.detection = detection
        self.history: Deque[BoundingBox] = deque([detection.box], maxlen=history_size)
        self.missed_frames = 0
        self.state = TrackState.ACTIVE

    def update(self, detection: Detection) -> None:
        """Actualiza track con nueva detección (resetea missed_frames)"""
        self.detection = detection
        self.history.append(detection.box)
        self.missed_frames = 0
        self.state = TrackState.ACTIVE

    def mark_missed(self) -> None:
        """Marca frame donde no se matcheó (el track pasa a STALE)"""
        self.missed_frames += 1
        self.state = TrackState.STALE

    def is_lost(self, max_missed_frames: int) -> bool:
        return self.missed_frames > max_missed_frames

    def predicted_box(self) -> BoundingBox:
        """
        Predicción lineal de la próxima posición.

        Con >= 2 entradas en el historial, desplaza el box más reciente por el
        delta de centro entre los dos últimos boxes. Si no, el box actual.

        Example:
            history = [(10,10,20,20), (12,10,22,20)] → (14,10,24,20)
        """
        if len(self.history) < 2:
            return self.detection.box

        current = self.history[-1]
        previous = self.history[-2]
        (cur_x, cur_y), (prev_x, prev_y) = current.center, previous.center
        return current.shifted(cur_x - prev_x, cur_y - prev_y)

    def snapshot(self) -> TrackSnapshot:
        return TrackSnapshot(
            track_id=self.track_id,
            detection=self.detection,
            history=tuple(self.history),
            missed_frames=self.missed_frames,
            state=self.state,
        )

    def __repr__(self) -> str:
        return (
            f"Track(id={self.track_id}, missed={self.missed_frames}, "
            f"history={len(self.history)}, state={self.state.value})"
        )
