"""
Detection / Track Converters
============================

Formatea la salida del core para colaboradores de rendering/publishing.

Responsabilidad:
- Conoce estructura de Detection y TrackSnapshot
- Convierte a sv.Detections (annotators de supervision)
- Convierte a dicts planos (JSON payloads)

Diseño:
- SRP: solo formateo, NO conoce transporte ni rendering
- Landmarks ausentes → NaN en el array de supervision
"""
from typing import Any, Dict, List, Sequence

import numpy as np
import supervision as sv

from ..inference.decoder import NUM_LANDMARKS, Detection
from ..tracking.track import TrackSnapshot


FACE_CLASS_ID = 0
FACE_CLASS_NAME = "face"


def _landmark_array(detections: Sequence[Detection]) -> np.ndarray:
    points = np.full((len(detections), NUM_LANDMARKS, 2), np.nan, dtype=np.float32)
    for i, detection in enumerate(detections):
        if detection.landmarks is not None:
            points[i] = np.asarray(detection.landmarks, dtype=np.float32)
    return points


def detections_to_supervision(detections: Sequence[Detection]) -> sv.Detections:
    """
    Convierte detecciones a sv.Detections.

    Args:
        detections: Detecciones finales (post-NMS)

    Returns:
        sv.Detections con xyxy, confidence, class_id=0 y
        data['landmarks'] (N, 5, 2)
    """
    if not detections:
        return sv.Detections.empty()

    return sv.Detections(
        xyxy=np.stack([d.box.xyxy for d in detections]),
        confidence=np.array([d.confidence for d in detections], dtype=np.float32),
        class_id=np.full(len(detections), FACE_CLASS_ID, dtype=int),
        data={
            'class_name': np.array([FACE_CLASS_NAME] * len(detections)),
            'landmarks': _landmark_array(detections),
        },
    )


def tracks_to_supervision(tracks: Sequence[TrackSnapshot]) -> sv.Detections:
    """
    Convierte tracks vivos a sv.Detections con tracker_id.

    Args:
        tracks: Snapshots retornados por TrackManager.update()

    Returns:
        sv.Detections con tracker_id = track_id y
        data['missed_frames']
    """
    if not tracks:
        return sv.Detections.empty()

    detections = detections_to_supervision([t.detection for t in tracks])
    detections.tracker_id = np.array([t.track_id for t in tracks], dtype=int)
    detections.data['missed_frames'] = np.array([t.missed_frames for t in tracks], dtype=int)
    return detections


def detection_to_dict(detection: Detection) -> Dict[str, Any]:
    """
    Formato plano (center + size, píxeles):

    {
        'x': center_x, 'y': center_y, 'width': w, 'height': h,
        'confidence': conf, 'class': 'face',
        'landmarks': [[x, y], ...] | None,
    }
    """
    box = detection.box
    center_x, center_y = box.center
    return {
        'x': center_x,
        'y': center_y,
        'width': box.width,
        'height': box.height,
        'confidence': detection.confidence,
        'class': FACE_CLASS_NAME,
        'landmarks': (
            [list(point) for point in detection.landmarks]
            if detection.landmarks is not None else None
        ),
    }


def track_to_dict(track: TrackSnapshot) -> Dict[str, Any]:
    """detection_to_dict + metadatos de tracking"""
    payload = detection_to_dict(track.detection)
    payload['track_id'] = track.track_id
    payload['_tracking'] = {
        'missed_frames': track.missed_frames,
        'history_length': len(track.history),
        'state': track.state.value,
    }
    return payload


def tracks_to_dicts(tracks: Sequence[TrackSnapshot]) -> List[Dict[str, Any]]:
    return [track_to_dict(track) for track in tracks]
