# src/pdf_table_extractor/spatial.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .structures import Rectangle


class RegionMethod(str, Enum):
    LATTICE = "Lattice"
    STREAM = "Stream"


@dataclass(frozen=True)
class TableRegion:
    """Región de tabla detectada: límites de filas (y) y columnas (x) estrictamente crecientes.

    Vive sólo entre el detector y el extractor; nunca se persiste.
    """
    bounds: Rectangle
    row_boundaries: Tuple[float, ...]
    col_boundaries: Tuple[float, ...]
    method: RegionMethod
    page_index: int = 0
    header_rows: int = 0
    anchor_column: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "row_boundaries", tuple(float(v) for v in self.row_boundaries))
        object.__setattr__(self, "col_boundaries", tuple(float(v) for v in self.col_boundaries))
        for name in ("row_boundaries", "col_boundaries"):
            values = getattr(self, name)
            if len(values) < 2:
                raise ValueError(f"{name} necesita al menos 2 valores (recibido {len(values)})")
            if any(b <= a for a, b in zip(values, values[1:])):
                raise ValueError(f"{name} debe ser estrictamente creciente: {values}")

    @property
    def row_count(self) -> int:
        return len(self.row_boundaries) - 1

    @property
    def col_count(self) -> int:
        return len(self.col_boundaries) - 1

    def cell_bounds(self, row: int, col: int) -> Rectangle:
        return Rectangle.from_edges(self.col_boundaries[col], self.row_boundaries[row],
                                    self.col_boundaries[col + 1], self.row_boundaries[row + 1])

    def __str__(self) -> str:
        return (f"TableRegion{{method={self.method.value}, bounds={self.bounds}, "
                f"rows={self.row_count}, cols={self.col_count}, page={self.page_index}}}")
