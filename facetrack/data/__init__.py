"""
Data - Output formatting for rendering/publishing collaborators
"""
from .converters import (
    detection_to_dict,
    detections_to_supervision,
    track_to_dict,
    tracks_to_dicts,
    tracks_to_supervision,
)

__all__ = [
    "detection_to_dict",
    "detections_to_supervision",
    "track_to_dict",
    "tracks_to_dicts",
    "tracks_to_supervision",
]
