"""
Pydantic Configuration Schemas
================================

Type-safe configuration validation usando Pydantic v2.

Benefits:
- Validación en load time (configuration errors son fatales antes del stream)
- Type safety con IDE autocomplete
- Mejores mensajes de error

Usage:
    config = FaceTrackConfig.from_yaml("config/facetrack/config.yaml")
    detector = build_detector(config)
"""
from typing import List, Literal, Optional
from pathlib import Path
import os

from pydantic import BaseModel, Field, field_validator, model_validator

from ..inference.anchors import (
    DEFAULT_ANCHOR_SIZES,
    DEFAULT_INPUT_SIZE,
    DEFAULT_STRIDES,
    AnchorConfig,
)
from ..inference.detector import DEFAULT_CONFIDENCE_THRESHOLD, clamp_confidence_threshold


LOG_LEVEL_ENV = "FACETRACK_LOG_LEVEL"


# ============================================================================
# Anchor Configuration
# ============================================================================

class AnchorSettings(BaseModel):
    """Anchor generator settings (deben coincidir con la red exportada)"""
    input_size: int = Field(
        default=DEFAULT_INPUT_SIZE,
        gt=0,
        description="Square network input size (pixels)"
    )
    strides: List[int] = Field(
        default_factory=lambda: list(DEFAULT_STRIDES),
        min_length=1,
        description="Feature map strides, in network output order"
    )
    anchor_sizes: List[List[int]] = Field(
        default_factory=lambda: [list(sizes) for sizes in DEFAULT_ANCHOR_SIZES],
        min_length=1,
        description="Anchor sizes (pixels) per stride"
    )

    @field_validator('strides')
    @classmethod
    def validate_strides_positive(cls, v: List[int]) -> List[int]:
        if any(stride <= 0 for stride in v):
            raise ValueError(f"strides must be positive, got {v}")
        return v

    @field_validator('anchor_sizes')
    @classmethod
    def validate_sizes_positive(cls, v: List[List[int]]) -> List[List[int]]:
        for sizes in v:
            if not sizes or any(size <= 0 for size in sizes):
                raise ValueError(f"anchor_sizes entries must be non-empty and positive, got {v}")
        return v

    @model_validator(mode='after')
    def validate_anchor_layout(self):
        """Un grupo de anchor sizes por stride; stride <= input_size"""
        if len(self.anchor_sizes) != len(self.strides):
            raise ValueError(
                f"anchor_sizes ({len(self.anchor_sizes)} groups) must match "
                f"strides ({len(self.strides)} strides)"
            )
        for stride in self.strides:
            if stride > self.input_size:
                raise ValueError(
                    f"stride {stride} must be <= input_size ({self.input_size})"
                )
        return self

    def to_anchor_config(self) -> AnchorConfig:
        return AnchorConfig(
            input_size=self.input_size,
            strides=tuple(self.strides),
            anchor_sizes=tuple(tuple(sizes) for sizes in self.anchor_sizes),
        )


# ============================================================================
# Detection / Suppression Configuration
# ============================================================================

class DetectionSettings(BaseModel):
    """Decoder settings"""
    confidence_threshold: float = Field(
        default=DEFAULT_CONFIDENCE_THRESHOLD,
        description="Face confidence threshold (clamped to [0.1, 0.9])"
    )
    expected_num_anchors: Optional[int] = Field(
        default=None,
        gt=0,
        description="Rows produced by the inference engine (validated against anchors)"
    )

    @field_validator('confidence_threshold')
    @classmethod
    def clamp_threshold(cls, v: float) -> float:
        """Clamp (no reject) a [0.1, 0.9]"""
        return clamp_confidence_threshold(v)


class SuppressionSettings(BaseModel):
    """Non-maximum suppression settings"""
    iou_threshold: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="IoU threshold for NMS"
    )


# ============================================================================
# Tracking Configuration
# ============================================================================

class TrackingSettings(BaseModel):
    """Track manager settings"""
    max_tracking_distance: float = Field(
        default=150.0,
        gt=0.0,
        description="Maximum center distance (pixels) to associate a detection"
    )
    max_missed_frames: int = Field(
        default=10,
        ge=0,
        description="Missed frames tolerated before a track is dropped"
    )
    min_confidence_for_new_track: float = Field(
        default=0.6,
        ge=0.0,
        le=1.0,
        description="Minimum confidence to seed a new track"
    )
    history_size: int = Field(
        default=10,
        ge=2,
        description="Position history capacity per track"
    )
    matching: Literal['greedy', 'optimal'] = Field(
        default='greedy',
        description="Association strategy"
    )


# ============================================================================
# Logging Configuration
# ============================================================================

class LoggingSettings(BaseModel):
    """Logging configuration (JSON structured logging)"""
    level: Literal['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'] = Field(
        default='INFO',
        description="Log level"
    )
    json_indent: Optional[int] = Field(
        default=None,
        ge=0,
        le=4,
        description="JSON indent for pretty-print (None=compact, 2=readable)"
    )
    file: Optional[str] = Field(
        default=None,
        description="Path to log file (None=stdout). If specified, enables file rotation."
    )
    max_bytes: int = Field(
        default=10485760,  # 10 MB
        ge=1024,
        description="Maximum bytes per log file before rotation (default 10 MB)"
    )
    backup_count: int = Field(
        default=5,
        ge=0,
        description="Number of backup log files to keep"
    )


# ============================================================================
# Root Configuration
# ============================================================================

class FaceTrackConfig(BaseModel):
    """
    Root configuration with full validation.

    Loads from YAML and validates all settings.
    FACETRACK_LOG_LEVEL overrides logging.level.
    """
    anchors: AnchorSettings = Field(default_factory=AnchorSettings)
    detection: DetectionSettings = Field(default_factory=DetectionSettings)
    suppression: SuppressionSettings = Field(default_factory=SuppressionSettings)
    tracking: TrackingSettings = Field(default_factory=TrackingSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @model_validator(mode='after')
    def validate_expected_anchor_count(self):
        """Engine rows deben coincidir con el anchor layout"""
        expected = self.detection.expected_num_anchors
        if expected is not None:
            actual = self.anchors.to_anchor_config().expected_count
            if expected != actual:
                raise ValueError(
                    f"expected_num_anchors ({expected}) does not match anchor "
                    f"configuration ({actual} anchors)"
                )
        return self

    @classmethod
    def from_yaml(cls, config_path: str) -> 'FaceTrackConfig':
        """
        Load and validate configuration from YAML file.

        Args:
            config_path: Path to config.yaml

        Returns:
            Validated FaceTrackConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValidationError: If config is invalid
        """
        import yaml

        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create it from config/facetrack/config.yaml.example"
            )

        with open(config_file, 'r') as f:
            config_dict = yaml.safe_load(f) or {}

        env_level = os.getenv(LOG_LEVEL_ENV)
        if env_level:
            config_dict.setdefault('logging', {})['level'] = env_level.upper()

        return cls(**config_dict)
