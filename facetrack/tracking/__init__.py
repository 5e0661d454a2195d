"""
Face Tracking - Persistent identities across frames

Modules:
- track.py: Track state + read-only snapshots
- matching.py: Matching strategies (greedy default, optimal assignment)
- manager.py: TrackManager (association + lifecycle)
"""

from .manager import (
    DEFAULT_MAX_MISSED_FRAMES,
    DEFAULT_MIN_CONFIDENCE_FOR_NEW_TRACK,
    TrackManager,
)
from .matching import (
    DEFAULT_MAX_TRACKING_DISTANCE,
    GreedyNearestCenterMatcher,
    MatchingStrategy,
    OptimalAssignmentMatcher,
    create_matching_strategy,
)
from .track import DEFAULT_HISTORY_SIZE, Track, TrackSnapshot, TrackState

__all__ = [
    # Manager
    "TrackManager",
    "DEFAULT_MAX_MISSED_FRAMES",
    "DEFAULT_MIN_CONFIDENCE_FOR_NEW_TRACK",
    # Matching
    "MatchingStrategy",
    "GreedyNearestCenterMatcher",
    "OptimalAssignmentMatcher",
    "create_matching_strategy",
    "DEFAULT_MAX_TRACKING_DISTANCE",
    # Track
    "Track",
    "TrackSnapshot",
    "TrackState",
    "DEFAULT_HISTORY_SIZE",
]
