"""
FaceTrack Test Suite
====================

Property-based tests for critical invariants.

Philosophy:
- Focus on invariants (properties that must always be true)
- Test critical paths (anchor ordering, decode math, NMS tie-break, track lifecycle)
- NOT 100% coverage - only key behaviors

Modules:
- test_geometry: IoU / center distance properties
- test_anchors: Anchor count + ordering contract
- test_decoder: Box/landmark decode, threshold, clamping
- test_suppression: Greedy NMS + stable tie-break
- test_tracking: Track lifecycle, motion prediction, id policy
- test_matching: Greedy vs optimal association
- test_config_validation: Pydantic schemas + YAML loading
- test_converters: supervision + dict payloads
- test_pipeline: Engine → detector → tracker integration
- test_logging: JSON structured logging + trace context
"""
