"""
Anchor Generator
================

Bounded Context: Anchor Geometry (priors del detector)

Genera la lista determinística de anchors (priors) que el decoder usa como
baseline para las regresiones de la red.

Ordering contract (NO es detalle de implementación):
    stride (outer) → row → col → anchor size (inner)

Este orden debe coincidir bit a bit con el layout de canales de la red.
Si cambia, todas las detecciones se desalinean silenciosamente.

Design:
- Pure function de la configuración (input_size, strides, anchor_sizes)
- Cache por configuración (se genera una sola vez, nunca se regenera mid-stream)
- Arrays NumPy read-only (inmutables una vez generados)

Default configuration:
    input 640×640, strides (8, 16, 32), sizes ((16, 32), (64, 128), (256, 512))
    → 80²×2 + 40²×2 + 20²×2 = 16,800 anchors
"""

from dataclasses import dataclass
from functools import lru_cache
import logging
from typing import Iterator, NamedTuple, Sequence, Tuple

import numpy as np


logger = logging.getLogger(__name__)


DEFAULT_INPUT_SIZE = 640
DEFAULT_STRIDES: Tuple[int, ...] = (8, 16, 32)
DEFAULT_ANCHOR_SIZES: Tuple[Tuple[int, ...], ...] = ((16, 32), (64, 128), (256, 512))


class AnchorConfigurationError(ValueError):
    """Configuración de anchors inválida (input size, strides o sizes no positivos)."""


class Anchor(NamedTuple):
    """Prior normalizado a [0, 1] relativo al input cuadrado de la red."""
    cx: float
    cy: float
    sx: float
    sy: float


def _whole_number(value, name: str) -> int:
    """
    int(value) solo si value es entero (640 o 640.0); nunca trunca 8.7 → 8.

    Raises:
        AnchorConfigurationError: Si value no es numérico o tiene parte fraccionaria
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise AnchorConfigurationError(f"{name} must be integers, got {value!r}") from None
    if not number.is_integer():
        raise AnchorConfigurationError(f"{name} must be integers, got {value!r}")
    return int(number)


@dataclass(frozen=True)
class AnchorConfig:
    """
    Configuración del generador de anchors.

    Attributes:
        input_size: Lado del input cuadrado de la red (píxeles)
        strides: Strides de cada feature map, en el orden de salida de la red
        anchor_sizes: Tamaños de anchor (píxeles) por stride
    """
    input_size: int = DEFAULT_INPUT_SIZE
    strides: Tuple[int, ...] = DEFAULT_STRIDES
    anchor_sizes: Tuple[Tuple[int, ...], ...] = DEFAULT_ANCHOR_SIZES

    def __post_init__(self):
        # Normalizar a int + tuplas (hashable → cacheable)
        object.__setattr__(self, 'input_size', _whole_number(self.input_size, 'input_size'))
        object.__setattr__(
            self, 'strides', tuple(_whole_number(s, 'strides') for s in self.strides)
        )
        object.__setattr__(
            self, 'anchor_sizes',
            tuple(tuple(_whole_number(s, 'anchor_sizes') for s in sizes) for sizes in self.anchor_sizes)
        )
        self.validate()

    def validate(self) -> None:
        """
        Valida la configuración (fail fast en configuration time).

        Raises:
            AnchorConfigurationError: Si algún valor es no positivo o las listas no coinciden
        """
        if self.input_size <= 0:
            raise AnchorConfigurationError(f"input_size must be > 0, got {self.input_size}")
        if not self.strides:
            raise AnchorConfigurationError("strides must not be empty")
        if len(self.anchor_sizes) != len(self.strides):
            raise AnchorConfigurationError(
                f"anchor_sizes must have one entry per stride: "
                f"{len(self.anchor_sizes)} entries for {len(self.strides)} strides"
            )
        for stride, sizes in zip(self.strides, self.anchor_sizes):
            if stride <= 0:
                raise AnchorConfigurationError(f"strides must be > 0, got {stride}")
            if stride > self.input_size:
                raise AnchorConfigurationError(
                    f"stride {stride} is larger than input_size {self.input_size}"
                )
            if not sizes:
                raise AnchorConfigurationError(f"stride {stride} has no anchor sizes")
            if any(size <= 0 for size in sizes):
                raise AnchorConfigurationError(f"anchor sizes must be > 0, got {list(sizes)}")

    @property
    def expected_count(self) -> int:
        """Σ sobre strides de (input_size // stride)² × anchors_por_stride"""
        return sum(
            (self.input_size // stride) ** 2 * len(sizes)
            for stride, sizes in zip(self.strides, self.anchor_sizes)
        )


class AnchorSet:
    """
    Lista ordenada e inmutable de anchors para una configuración.

    Internamente es un array (N, 4) read-only con columnas [cx, cy, sx, sy].
    Se accede por índice (Anchor) o como array completo para decode vectorizado.
    """

    def __init__(self, config: AnchorConfig, priors: np.ndarray):
        priors = np.ascontiguousarray(priors, dtype=np.float64)
        priors.setflags(write=False)
        self._config = config
        self._priors = priors

    @property
    def config(self) -> AnchorConfig:
        return self._config

    @property
    def priors(self) -> np.ndarray:
        """Array (N, 4) read-only: [cx, cy, sx, sy]"""
        return self._priors

    def __len__(self) -> int:
        return self._priors.shape[0]

    def __getitem__(self, index: int) -> Anchor:
        cx, cy, sx, sy = self._priors[index]
        return Anchor(float(cx), float(cy), float(sx), float(sy))

    def __iter__(self) -> Iterator[Anchor]:
        for index in range(len(self)):
            yield self[index]

    def __repr__(self) -> str:
        return f"AnchorSet(count={len(self)}, input_size={self._config.input_size})"


def _build_priors(config: AnchorConfig) -> np.ndarray:
    """
    Construye el array de priors respetando el orden stride → row → col → size.

    Operación vectorizada por stride:
    - meshgrid con indexing='ij' → row-major (row outer, col inner)
    - np.repeat sobre centros + np.tile sobre sizes → size innermost
    """
    blocks = []
    for stride, sizes in zip(config.strides, config.anchor_sizes):
        grid = config.input_size // stride
        rows, cols = np.meshgrid(np.arange(grid), np.arange(grid), indexing='ij')

        cx = (cols.ravel() + 0.5) * stride / config.input_size
        cy = (rows.ravel() + 0.5) * stride / config.input_size
        scales = np.asarray(sizes, dtype=np.float64) / config.input_size

        num_sizes = len(sizes)
        block = np.empty((grid * grid * num_sizes, 4), dtype=np.float64)
        block[:, 0] = np.repeat(cx, num_sizes)
        block[:, 1] = np.repeat(cy, num_sizes)
        block[:, 2] = np.tile(scales, grid * grid)
        block[:, 3] = block[:, 2]
        blocks.append(block)

    return np.concatenate(blocks, axis=0)


@lru_cache(maxsize=8)
def _cached_anchor_set(config: AnchorConfig) -> AnchorSet:
    priors = _build_priors(config)
    logger.info(
        f"Anchors generated: {priors.shape[0]} priors",
        extra={
            "component": "anchor_generator",
            "event": "anchors_generated",
            "input_size": config.input_size,
            "strides": list(config.strides),
            "num_anchors": int(priors.shape[0]),
        }
    )
    return AnchorSet(config, priors)


def generate_anchors(
    input_size: int = DEFAULT_INPUT_SIZE,
    strides: Sequence[int] = DEFAULT_STRIDES,
    anchor_sizes: Sequence[Sequence[int]] = DEFAULT_ANCHOR_SIZES,
) -> AnchorSet:
    """
    Genera (o recupera del cache) la lista ordenada de anchors.

    Args:
        input_size: Lado del input cuadrado de la red
        strides: Strides en el orden de salida de la red
        anchor_sizes: Tamaños de anchor por stride

    Returns:
        AnchorSet inmutable; llamadas repetidas con la misma configuración
        retornan la misma instancia

    Raises:
        AnchorConfigurationError: Si la configuración es inválida

    Example:
        >>> anchors = generate_anchors()
        >>> len(anchors)
        16800
        >>> anchors[0]
        Anchor(cx=0.00625, cy=0.00625, sx=0.025, sy=0.025)
    """
    config = AnchorConfig(
        input_size=input_size,
        strides=tuple(strides),
        anchor_sizes=tuple(tuple(sizes) for sizes in anchor_sizes),
    )
    return get_anchor_set(config)


def get_anchor_set(config: AnchorConfig) -> AnchorSet:
    """Retorna el AnchorSet cacheado para una AnchorConfig ya validada."""
    return _cached_anchor_set(config)
