"""
Pipeline Integration Tests
==========================

Invariantes testeadas:
1. Engine desalineado con anchors → AnchorMismatchError al construir (fail fast)
2. process_frame: engine → decode + NMS → tracks, con IDs estables entre frames
3. Errores del engine se propagan (sin retries)
4. Factories construyen el pipeline desde FaceTrackConfig
"""
from collections import deque

import numpy as np
import pytest

from facetrack import (
    FaceTrackConfig,
    FaceTrackingPipeline,
    build_pipeline,
)
from facetrack.inference.decoder import AnchorMismatchError
from facetrack.inference.detector import FaceDetector
from facetrack.inference.engine import InferenceEngine
from facetrack.pipeline import image_size
from facetrack.tracking.manager import TrackManager
from facetrack.tracking.matching import OptimalAssignmentMatcher

from .conftest import raw_with_faces


SMALL_ANCHORS = {'input_size': 64, 'strides': [32], 'anchor_sizes': [[16, 32]]}


class ScriptedEngine(InferenceEngine):
    """Engine fake: retorna RawFrameOutputs pre-armados en orden"""

    def __init__(self, outputs, num_anchors=8):
        self._outputs = deque(outputs)
        self._num_anchors = num_anchors
        self.calls = 0
        self.closed = False

    def __call__(self, image):
        self.calls += 1
        return self._outputs.popleft()

    @property
    def num_anchors(self):
        return self._num_anchors

    def close(self):
        self.closed = True


class FailingEngine(ScriptedEngine):
    def __call__(self, image):
        raise RuntimeError("interpreter crashed")


def frame(width=640, height=480):
    return np.zeros((height, width, 3), dtype=np.uint8)


@pytest.fixture
def small_detector(small_anchor_config):
    return FaceDetector(anchor_config=small_anchor_config)


@pytest.mark.integration
class TestPipelineConstruction:
    """Validación engine ↔ anchors"""

    def test_mismatched_engine_rejected(self, small_detector):
        with pytest.raises(AnchorMismatchError):
            FaceTrackingPipeline(ScriptedEngine([], num_anchors=16800), small_detector)

    def test_build_pipeline_from_config(self):
        config = FaceTrackConfig(anchors=SMALL_ANCHORS, tracking={'matching': 'optimal'})

        pipeline = build_pipeline(config, ScriptedEngine([]))

        assert len(pipeline.detector.anchors) == 8
        assert isinstance(pipeline.tracker.matching_strategy, OptimalAssignmentMatcher)

    def test_build_pipeline_without_tracking(self):
        config = FaceTrackConfig(anchors=SMALL_ANCHORS)

        pipeline = build_pipeline(config, ScriptedEngine([]), enable_tracking=False)

        assert pipeline.tracker is None

    def test_build_pipeline_default_config_needs_16800_rows(self):
        with pytest.raises(AnchorMismatchError):
            build_pipeline(FaceTrackConfig(), ScriptedEngine([], num_anchors=8))


@pytest.mark.integration
class TestProcessFrame:
    """Flujo completo por frame"""

    def test_detections_and_tracks(self, small_detector):
        engine = ScriptedEngine([
            raw_with_faces(8, {0: 0.9, 6: 0.8}),
            raw_with_faces(8, {0: 0.85}),
        ])
        pipeline = FaceTrackingPipeline(engine, small_detector, TrackManager())

        first = pipeline.process_frame(frame())
        second = pipeline.process_frame(frame())

        assert first.frame_index == 0
        assert [d.confidence for d in first.detections] == pytest.approx([0.9, 0.8])
        assert [t.track_id for t in first.tracks] == [0, 1]

        assert second.frame_index == 1
        assert [(t.track_id, t.missed_frames) for t in second.tracks] == [(0, 0), (1, 1)]
        assert pipeline.frames_processed == 2

    def test_detections_scaled_to_frame_size(self, small_detector):
        engine = ScriptedEngine([raw_with_faces(8, {0: 0.9})])
        pipeline = FaceTrackingPipeline(engine, small_detector)

        result = pipeline.process_frame(frame(width=1280, height=720))

        box = result.detections[0].box
        assert box.as_tuple() == pytest.approx((160.0, 90.0, 480.0, 270.0))
        assert result.tracks == ()

    def test_result_is_immutable(self, small_detector):
        engine = ScriptedEngine([raw_with_faces(8, {0: 0.9})])
        pipeline = FaceTrackingPipeline(engine, small_detector, TrackManager())

        result = pipeline.process_frame(frame())

        assert isinstance(result.detections, tuple)
        assert isinstance(result.tracks, tuple)

    def test_engine_error_propagates(self, small_detector):
        pipeline = FaceTrackingPipeline(FailingEngine([]), small_detector, TrackManager())

        with pytest.raises(RuntimeError, match="interpreter crashed"):
            pipeline.process_frame(frame())

        assert pipeline.frames_processed == 0

    def test_invalid_frame_rejected(self, small_detector):
        pipeline = FaceTrackingPipeline(ScriptedEngine([]), small_detector)

        with pytest.raises(ValueError):
            pipeline.process_frame([1, 2, 3])

    def test_close_releases_engine(self, small_detector):
        engine = ScriptedEngine([])
        pipeline = FaceTrackingPipeline(engine, small_detector)

        pipeline.close()

        assert engine.closed


@pytest.mark.unit
class TestImageSize:

    def test_hwc_frame(self):
        assert image_size(np.zeros((480, 640, 3))) == (640, 480)

    def test_grayscale_frame(self):
        assert image_size(np.zeros((720, 1280))) == (1280, 720)

    def test_missing_shape(self):
        with pytest.raises(ValueError):
            image_size(object())
