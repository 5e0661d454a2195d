"""
Track Manager
=============

Asocia las detecciones de cada frame a tracks persistentes (IDs estables)
con predicción lineal de movimiento y gestión de lifecycle.

Algoritmo por frame (order-sensitive):
1. Pool de detecciones no matcheadas = todas las del frame
2. Para cada track existente (orden de inserción):
   a. Posición predicha (extrapolación lineal del centro)
   b. Matching contra el pool (strategy; default greedy nearest-center,
      cap duro max_tracking_distance)
   c. Match → update (history acotado, missed_frames = 0)
   d. Sin match → missed_frames += 1; se descarta si > max_missed_frames
3. Detecciones sobrantes con confidence >= min_confidence_for_new_track
   crean un track nuevo (ID monotónico); el resto se ignora
4. Live set = tracks actualizados (orden original) + tracks nuevos (al final)

Ejemplo (max_missed_frames=10):

Frame 1:  face conf=0.80 → NEW track id=0
Frame 2:  face cerca     → MATCH id=0 (missed=0)
Frame 3:  (nada)         → STALE id=0 (missed=1)
...
Frame 13: (nada)         → id=0 removido (missed=11 > 10)
Frame 14: face conf=0.80 → NEW track id=1 (sin resurrección)

Concurrency:
    Una instancia = un stream. update() muta estado in-place (tracks,
    historiales, contador de IDs); llamadas concurrentes requieren
    serialización externa.
"""

import itertools
import logging
from typing import Any, Dict, List, Optional, Sequence

from ..inference.decoder import Detection
from .matching import (
    DEFAULT_MAX_TRACKING_DISTANCE,
    GreedyNearestCenterMatcher,
    MatchingStrategy,
)
from .track import DEFAULT_HISTORY_SIZE, Track, TrackSnapshot


logger = logging.getLogger(__name__)


DEFAULT_MAX_MISSED_FRAMES = 10
DEFAULT_MIN_CONFIDENCE_FOR_NEW_TRACK = 0.6


class TrackManager:
    """
    Dueño único de la tabla de tracks + contador de IDs.

    Usage:
        tracker = TrackManager()
        for detections in frames:
            tracks = tracker.update(detections)   # List[TrackSnapshot]
    """

    def __init__(
        self,
        max_tracking_distance: Optional[float] = None,
        max_missed_frames: int = DEFAULT_MAX_MISSED_FRAMES,
        min_confidence_for_new_track: float = DEFAULT_MIN_CONFIDENCE_FOR_NEW_TRACK,
        history_size: int = DEFAULT_HISTORY_SIZE,
        matching_strategy: Optional[MatchingStrategy] = None,
    ):
        """
        Args:
            max_tracking_distance: Distancia máxima de centro (píxeles) para matchear.
                None = la de matching_strategy, o 150 si no hay strategy
            max_missed_frames: Frames sin match tolerados antes de descartar
            min_confidence_for_new_track: Confianza mínima para crear un track
            history_size: Capacidad del historial de posiciones por track
            matching_strategy: Strategy de asociación (None = greedy con max_tracking_distance)

        Raises:
            ValueError: Si max_tracking_distance no coincide con matching_strategy.max_distance
        """
        if matching_strategy is None:
            matching_strategy = GreedyNearestCenterMatcher(
                max_distance=(
                    DEFAULT_MAX_TRACKING_DISTANCE
                    if max_tracking_distance is None else max_tracking_distance
                )
            )
        elif (
            max_tracking_distance is not None
            and max_tracking_distance != matching_strategy.max_distance
        ):
            raise ValueError(
                f"max_tracking_distance ({max_tracking_distance}) does not match "
                f"{matching_strategy.get_name()}.max_distance ({matching_strategy.max_distance})"
            )

        # La strategy es la única dueña del cap
        self.max_tracking_distance = matching_strategy.max_distance
        self.max_missed_frames = max_missed_frames
        self.min_confidence_for_new_track = min_confidence_for_new_track
        self.history_size = history_size
        self.matching_strategy = matching_strategy

        self._tracks: List[Track] = []
        self._id_counter = itertools.count()

        # Stats
        self._stats: Dict[str, int] = {
            'frames_processed': 0,
            'total_detections': 0,
            'total_created': 0,
            'total_lost': 0,
            'total_ignored': 0,
        }

        logger.info(
            "TrackManager initialized",
            extra={
                "component": "track_manager",
                "event": "tracker_initialized",
                "max_tracking_distance": self.max_tracking_distance,
                "max_missed_frames": max_missed_frames,
                "min_confidence_for_new_track": min_confidence_for_new_track,
                "strategy": matching_strategy.get_name(),
            }
        )

    def update(self, detections: Sequence[Detection]) -> List[TrackSnapshot]:
        """
        Procesa las detecciones de un frame.

        Args:
            detections: Detecciones finales del frame (post-NMS)

        Returns:
            Snapshots read-only de los tracks vivos, en orden interno
        """
        detections = list(detections)
        self._stats['frames_processed'] += 1
        self._stats['total_detections'] += len(detections)

        # 1-2. Matching de tracks existentes contra el pool
        predicted = [track.predicted_box() for track in self._tracks]
        assignments = self.matching_strategy.match(predicted, detections)
        matched_detections = set(assignments.values())

        live: List[Track] = []
        for track_idx, track in enumerate(self._tracks):
            det_idx = assignments.get(track_idx)
            if det_idx is not None:
                track.update(detections[det_idx])
                live.append(track)
                continue

            track.mark_missed()
            if track.is_lost(self.max_missed_frames):
                self._stats['total_lost'] += 1
                logger.debug(
                    f"🗑️ Track lost: id={track.track_id} after {track.missed_frames} missed frames",
                    extra={
                        "component": "track_manager",
                        "event": "track_lost",
                        "track_id": track.track_id,
                        "missed_frames": track.missed_frames,
                    }
                )
            else:
                live.append(track)

        # 3. Nuevos tracks desde detecciones no matcheadas
        for det_idx, detection in enumerate(detections):
            if det_idx in matched_detections:
                continue

            if detection.confidence >= self.min_confidence_for_new_track:
                track = Track(next(self._id_counter), detection, history_size=self.history_size)
                live.append(track)
                self._stats['total_created'] += 1
                logger.debug(
                    f"🆕 New track: id={track.track_id} conf={detection.confidence:.2f}",
                    extra={
                        "component": "track_manager",
                        "event": "track_created",
                        "track_id": track.track_id,
                        "confidence": detection.confidence,
                    }
                )
            else:
                self._stats['total_ignored'] += 1

        # 4. Reemplazar live set
        self._tracks = live

        return [track.snapshot() for track in self._tracks]

    @property
    def active_track_count(self) -> int:
        return len(self._tracks)

    @property
    def tracks(self) -> List[TrackSnapshot]:
        """Snapshots de los tracks vivos (sin avanzar el frame)"""
        return [track.snapshot() for track in self._tracks]

    def reset(self) -> None:
        """
        Descarta todos los tracks vivos (ej: cambio de escena).

        El contador de IDs NO se resetea: los IDs nunca se reutilizan
        durante la vida de la instancia.
        """
        dropped = len(self._tracks)
        self._tracks = []
        logger.info(
            "🔄 Tracks reset",
            extra={
                "component": "track_manager",
                "event": "tracks_reset",
                "dropped_tracks": dropped,
            }
        )

    def get_stats(self) -> Dict[str, Any]:
        """Retorna estadísticas acumuladas del tracker"""
        stats: Dict[str, Any] = dict(self._stats)
        stats['active_tracks'] = len(self._tracks)
        stats['strategy'] = self.matching_strategy.get_name()
        return stats
