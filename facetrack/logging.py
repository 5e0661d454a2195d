"""
Structured Logging
==================

JSON logs para el pipeline de detección + tracking.

Cada record sale como una línea JSON con:
- timestamp, level, logger, message
- trace_id del frame en curso (si hay uno activo)
- los campos de `extra` (component, event, métricas del stage)

Design Philosophy:
- Un único formato (JSON), consultable con jq / Loki / Elastic
- Correlación por frame: el pipeline abre un trace_context por process_frame()
- Stdout por default; archivo con rotación si se configura log_file

Usage:
    from facetrack.logging import setup_logging, trace_context

    setup_logging(level="DEBUG")                       # desarrollo
    setup_logging(level="INFO", log_file="logs/facetrack.log")  # producción

    with trace_context(generate_trace_id("frame")):
        tracker.update(detections)   # todos los logs llevan el mismo trace_id
"""
from contextlib import contextmanager
from contextvars import ContextVar
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
import sys
from typing import Any, Dict, Iterator, Optional
import uuid

from pythonjsonlogger.json import JsonFormatter


JSON_FORMAT = '%(timestamp)s %(levelname)s %(name)s %(message)s'


# ============================================================================
# Trace Context
# ============================================================================

_current_trace: ContextVar[Optional[str]] = ContextVar('facetrack_trace_id', default=None)


def get_trace_id() -> Optional[str]:
    """trace_id activo en este contexto, o None fuera de un trace_context"""
    return _current_trace.get()


def generate_trace_id(prefix: str = "trace") -> str:
    """
    Nuevo trace_id corto y único.

    Example:
        >>> generate_trace_id("frame")
        'frame-3f9a1c2e'
    """
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


@contextmanager
def trace_context(trace_id: Optional[str] = None) -> Iterator[str]:
    """
    Activa un trace_id mientras dura el bloque (anidable).

    Al salir se restaura el trace anterior, aun si el bloque lanza.
    """
    token = _current_trace.set(trace_id or generate_trace_id())
    try:
        yield _current_trace.get()
    finally:
        _current_trace.reset(token)


# ============================================================================
# Formatter + Setup
# ============================================================================

class FaceTrackJsonFormatter(JsonFormatter):
    """
    JsonFormatter con nombres de campo cortos + trace_id automático.

    levelname → level, name → logger. Los static_fields se agregan a cada
    record salvo que el record ya traiga esa key.
    """

    def __init__(self, *args, static_fields: Optional[Dict[str, Any]] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.static_fields = dict(static_fields or {})

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        for source, target in (('levelname', 'level'), ('name', 'logger')):
            if source in log_record:
                log_record[target] = log_record.pop(source)

        trace_id = get_trace_id()
        if trace_id is not None:
            log_record.setdefault('trace_id', trace_id)

        for key, value in self.static_fields.items():
            log_record.setdefault(key, value)


def _build_handler(
    log_file: Optional[str],
    max_bytes: int,
    backup_count: int,
) -> logging.Handler:
    if not log_file:
        return logging.StreamHandler(sys.stdout)

    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        filename=str(path),
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding='utf-8',
    )


def setup_logging(
    level: str = "INFO",
    indent: Optional[int] = None,
    add_fields: Optional[Dict[str, Any]] = None,
    log_file: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Handler:
    """
    Instala el handler JSON en el root logger (reemplaza los existentes).

    Args:
        level: DEBUG | INFO | WARNING | ERROR | CRITICAL
        indent: Indent del JSON (None = una línea por record)
        add_fields: Campos fijos para todos los records (ej: {"stream": "cam-01"})
        log_file: Archivo destino con rotación (None = stdout)
        max_bytes: Tamaño por archivo antes de rotar
        backup_count: Archivos rotados a conservar

    Returns:
        El handler instalado
    """
    handler = _build_handler(log_file, max_bytes, backup_count)
    handler.setFormatter(FaceTrackJsonFormatter(
        JSON_FORMAT,
        timestamp=True,
        json_indent=indent,
        static_fields=add_fields,
    ))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper()))
    return handler


# ============================================================================
# Stage Helpers
# ============================================================================

def log_detection_stats(
    logger: logging.Logger,
    candidates: int,
    detections: int,
    latency_ms: Optional[float] = None,
    frame_index: Optional[int] = None,
    component: str = "face_detector",
) -> None:
    """
    DEBUG con el resultado de decode + NMS de un frame.

    Args:
        logger: Logger del módulo que reporta
        candidates: Detecciones sobre el threshold (pre-NMS)
        detections: Detecciones finales (post-NMS)
        latency_ms: Duración del stage
        frame_index: Índice del frame, si se conoce
        component: Valor del campo component
    """
    stats: Dict[str, Any] = {"candidates": candidates, "detections": detections}
    if latency_ms is not None:
        stats["latency_ms"] = round(latency_ms, 2)

    extra: Dict[str, Any] = {
        "component": component,
        "event": "detection_completed",
        "detection": stats,
    }
    if frame_index is not None:
        extra["frame_index"] = frame_index

    logger.debug(
        f"Detection processed: {candidates} candidates → {detections} faces",
        extra=extra
    )


def log_tracking_stats(
    logger: logging.Logger,
    detections: int,
    active_tracks: int,
    total_created: int = 0,
    total_lost: int = 0,
    frame_index: Optional[int] = None,
    component: str = "track_manager",
) -> None:
    """DEBUG con el estado del tracker luego de un update"""
    extra: Dict[str, Any] = {
        "component": component,
        "event": "tracking_updated",
        "tracking": {
            "detections": detections,
            "active_tracks": active_tracks,
            "total_created": total_created,
            "total_lost": total_lost,
        },
    }
    if frame_index is not None:
        extra["frame_index"] = frame_index

    logger.debug(
        f"Tracking processed: {detections} detections → {active_tracks} active tracks",
        extra=extra
    )


def log_error_with_context(
    logger: logging.Logger,
    message: str,
    exception: Optional[BaseException] = None,
    component: str = "unknown",
    event: Optional[str] = None,
    trace_id: Optional[str] = None,
    **context: Any
) -> None:
    """
    ERROR con component/event/trace_id y el tipo + mensaje de la excepción.

    Con exception, incluye el traceback (exc_info). El caller decide si
    re-lanza; este helper solo reporta.

    Args:
        logger: Logger del módulo que reporta
        message: Descripción del fallo
        exception: Excepción capturada
        component: Componente donde ocurrió
        event: Nombre del evento (ej: "engine_error")
        trace_id: Override del trace activo
        **context: Campos extra (frame_index, engine, ...)
    """
    extra: Dict[str, Any] = {
        "component": component,
        "trace_id": trace_id or get_trace_id(),
    }
    if event:
        extra["event"] = event
    if exception is not None:
        extra["error_type"] = type(exception).__name__
        extra["error_message"] = str(exception)
    extra.update(context)

    if exception is not None:
        logger.error(f"{message}: {exception}", extra=extra, exc_info=True)
    else:
        logger.error(message, extra=extra)


__all__ = [
    "FaceTrackJsonFormatter",
    "setup_logging",
    "trace_context",
    "get_trace_id",
    "generate_trace_id",
    "log_detection_stats",
    "log_tracking_stats",
    "log_error_with_context",
]
