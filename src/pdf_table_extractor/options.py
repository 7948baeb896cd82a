from __future__ import annotations
from dataclasses import dataclass, fields, replace
from enum import Enum
from functools import lru_cache
from typing import Any, Mapping, Pattern
import re

DEFAULT_AMOUNT_PATTERN = r"^-?\d{1,3}(,\d{3})*\.\d{2}$"
DEFAULT_DATE_PATTERN = r"^\d{1,2}/\d{1,2}/\d{2,4}$"


class DetectionMethod(str, Enum):
    AUTO = "auto"
    LATTICE = "lattice"
    STREAM = "stream"


@lru_cache(maxsize=32)
def _compile(pattern: str) -> Pattern[str]:
    return re.compile(pattern)


@dataclass(frozen=True)
class DetectionOptions:
    """Umbrales de detección. Inmutable: se pasa explícitamente a cada llamada.

    - gap_factor: múltiplo del gap típico entre palabras que separa columnas.
    - min_repeat_lines: líneas consecutivas necesarias para confirmar un patrón de columnas.
    - column_tolerance: tolerancia (pt) al comparar posiciones de gaps entre líneas.
    - line_overlap: fracción de la altura menor que deben solaparse dos elementos de la misma línea.
    - ruling_tolerance: tolerancia (pt) para líneas horizontales/verticales y deduplicación.
    """
    method: DetectionMethod = DetectionMethod.AUTO
    gap_factor: float = 3.0
    min_repeat_lines: int = 3
    amount_pattern: str = DEFAULT_AMOUNT_PATTERN
    date_pattern: str = DEFAULT_DATE_PATTERN
    column_tolerance: float = 2.0
    line_overlap: float = 0.5
    ruling_tolerance: float = 2.0

    def __post_init__(self) -> None:
        if not isinstance(self.method, DetectionMethod):
            object.__setattr__(self, "method", DetectionMethod(str(self.method).lower()))
        if self.gap_factor <= 0:
            raise ValueError(f"gap_factor debe ser > 0 (recibido {self.gap_factor})")
        if self.min_repeat_lines < 2:
            raise ValueError(f"min_repeat_lines debe ser >= 2 (recibido {self.min_repeat_lines})")
        if not 0 < self.line_overlap <= 1:
            raise ValueError(f"line_overlap debe estar en (0, 1] (recibido {self.line_overlap})")
        if self.column_tolerance < 0 or self.ruling_tolerance <= 0:
            raise ValueError("Las tolerancias deben ser positivas.")
        for name in ("amount_pattern", "date_pattern"):
            try:
                _compile(getattr(self, name))
            except re.error as exc:
                raise ValueError(f"{name} no es una expresión regular válida: {exc}") from exc

    @property
    def amount_re(self) -> Pattern[str]:
        return _compile(self.amount_pattern)

    @property
    def date_re(self) -> Pattern[str]:
        return _compile(self.date_pattern)

    def is_amount(self, text: str) -> bool:
        return bool(self.amount_re.match(text.strip()))

    def is_anchor_value(self, text: str) -> bool:
        s = text.strip()
        return bool(self.amount_re.match(s) or self.date_re.match(s))

    def with_overrides(self, **changes: Any) -> "DetectionOptions":
        changes = {k: v for k, v in changes.items() if v is not None}
        return replace(self, **changes)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "DetectionOptions":
        """Construye opciones desde un dict (config JSON o argumentos CLI); ignora claves desconocidas."""
        known = {f.name for f in fields(cls)}
        kwargs = {k.replace("-", "_"): v for k, v in data.items()}
        return cls(**{k: v for k, v in kwargs.items() if k in known and v is not None})


DEFAULT_OPTIONS = DetectionOptions()
