"""
Inference Engine Interface
==========================

ABC para el engine de inferencia externo (TFLite, ONNX Runtime, etc).

El core no ejecuta la red: solo necesita que el engine entregue los tres
tensores de salida por invocación. Este contrato los formaliza.

Diseño:
- Interface clara y explícita (no duck typing implícito)
- Métodos abstractos para enforcement
- Defaults sensatos para metadata opcional
"""
from abc import ABC, abstractmethod
from typing import Any

from .decoder import RawFrameOutput


class InferenceEngine(ABC):
    """
    Clase base abstracta para engines de inferencia.

    Contract:
    - __call__: Ejecuta la red sobre una imagen y retorna RawFrameOutput (REQUIRED)
    - num_anchors: Filas que produce por tensor (REQUIRED, validado contra el AnchorSet)
    - close: Libera recursos (OPTIONAL, default no-op)

    La imagen se pasa tal cual la entrega el proveedor de frames; resize,
    normalización y conversión de color son responsabilidad del engine.
    """

    @abstractmethod
    def __call__(self, image: Any) -> RawFrameOutput:
        """
        Ejecuta inferencia sobre una imagen.

        Args:
            image: Frame de entrada (típicamente np.ndarray HxWxC)

        Returns:
            RawFrameOutput con boxes (N, 4), scores (N, 2), landmarks (N, 10)
        """
        pass

    @property
    @abstractmethod
    def num_anchors(self) -> int:
        """
        Cantidad de filas por tensor de salida.

        Returns:
            N (debe coincidir con len(AnchorSet) de la configuración activa)
        """
        pass

    @property
    def name(self) -> str:
        """Nombre del engine (para logging/debugging)."""
        return self.__class__.__name__

    def close(self) -> None:
        """Libera recursos del engine (no-op por default)."""
