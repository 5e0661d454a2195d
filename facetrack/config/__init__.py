"""
Configuration Module
====================

Provides configuration loading with Pydantic validation.

Usage:
    from facetrack.config import FaceTrackConfig
    config = FaceTrackConfig.from_yaml("config/facetrack/config.yaml")
"""
from .schemas import (
    FaceTrackConfig,
    AnchorSettings,
    DetectionSettings,
    SuppressionSettings,
    TrackingSettings,
    LoggingSettings,
)

__all__ = [
    'FaceTrackConfig',
    'AnchorSettings',
    'DetectionSettings',
    'SuppressionSettings',
    'TrackingSettings',
    'LoggingSettings',
]
