from __future__ import annotations
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional

from .structures import Rectangle


class TableValidationError(ValueError):
    """La rejilla no cumple las invariantes de Table (forma rectangular, índices de celda)."""


class TextAlign(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


@dataclass
class Cell:
    text: str
    row: int
    column: int
    row_span: int = 1
    col_span: int = 1
    bounds: Optional[Rectangle] = None
    text_align: TextAlign = TextAlign.LEFT

    def is_merged(self) -> bool:
        return self.row_span > 1 or self.col_span > 1

    def is_empty(self) -> bool:
        return len(self.text) == 0

    def with_row_span(self, row_span: int) -> "Cell":
        return replace(self, row_span=max(1, row_span))

    def with_col_span(self, col_span: int) -> "Cell":
        return replace(self, col_span=max(1, col_span))

    def with_alignment(self, align: TextAlign) -> "Cell":
        return replace(self, text_align=align)

    def __str__(self) -> str:
        if self.is_merged():
            return (f"Cell{{text={self.text!r}, row={self.row}, col={self.column}, "
                    f"rowSpan={self.row_span}, colSpan={self.col_span}}}")
        return f"Cell{{text={self.text!r}, row={self.row}, col={self.column}}}"


@dataclass
class Table:
    """Tabla extraída: rejilla rectangular `row_count x col_count` en orden fila-mayor.

    Una celda combinada guarda el texto sólo en la posición superior izquierda;
    las posiciones que cubre existen físicamente como celdas vacías.
    """
    rows: List[List[Cell]]
    row_count: int
    col_count: int
    page_num: int = 0
    bounds: Optional[Rectangle] = None
    method: str = "Unknown"
    header_rows: int = 0

    @classmethod
    def create(cls, row_count: int, col_count: int) -> "Table":
        if row_count < 1:
            raise ValueError(f"invalid row count: {row_count} (must be >= 1)")
        if col_count < 1:
            raise ValueError(f"invalid column count: {col_count} (must be >= 1)")
        rows = [[Cell("", r, c) for c in range(col_count)] for r in range(row_count)]
        return cls(rows=rows, row_count=row_count, col_count=col_count)

    def get_cell(self, row: int, col: int) -> Optional[Cell]:
        if 0 <= row < self.row_count and 0 <= col < self.col_count:
            return self.rows[row][col]
        return None

    def set_cell(self, row: int, col: int, cell: Cell) -> None:
        if not 0 <= row < self.row_count:
            raise IndexError(f"row index out of bounds: {row} (table has {self.row_count} rows)")
        if not 0 <= col < self.col_count:
            raise IndexError(f"column index out of bounds: {col} (table has {self.col_count} columns)")
        cell.row = row
        cell.column = col
        self.rows[row][col] = cell

    def get_row(self, row: int) -> Optional[List[Cell]]:
        if 0 <= row < self.row_count:
            return self.rows[row]
        return None

    def get_column(self, col: int) -> Optional[List[Cell]]:
        if 0 <= col < self.col_count:
            return [self.rows[r][col] for r in range(self.row_count)]
        return None

    def is_empty(self) -> bool:
        return all(cell.is_empty() for row in self.rows for cell in row)

    def cell_count(self) -> int:
        return self.row_count * self.col_count

    def non_empty_cell_count(self) -> int:
        return sum(1 for row in self.rows for cell in row if not cell.is_empty())

    def has_merged_cells(self) -> bool:
        return any(cell.is_merged() for row in self.rows for cell in row)

    def to_string_grid(self) -> List[List[str]]:
        return [[cell.text for cell in row] for row in self.rows]

    def validate(self) -> None:
        if self.row_count < 1:
            raise TableValidationError(f"invalid row count: {self.row_count}")
        if self.col_count < 1:
            raise TableValidationError(f"invalid column count: {self.col_count}")
        if len(self.rows) != self.row_count:
            raise TableValidationError(
                f"row count mismatch: expected {self.row_count}, got {len(self.rows)}")
        for r, row in enumerate(self.rows):
            if len(row) != self.col_count:
                raise TableValidationError(
                    f"column count mismatch in row {r}: expected {self.col_count}, got {len(row)}")
            for c, cell in enumerate(row):
                if cell.row != r or cell.column != c:
                    raise TableValidationError(
                        f"cell index mismatch at ({r},{c}): got ({cell.row},{cell.column})")
                if r + cell.row_span > self.row_count or c + cell.col_span > self.col_count:
                    raise TableValidationError(f"cell span out of bounds at ({r},{c})")

    def __str__(self) -> str:
        out = [f"Table{{rows={self.row_count}, cols={self.col_count}, "
               f"method={self.method}, page={self.page_num}}}"]
        for r, row in enumerate(self.rows):
            out.append(f"  Row {r}: [" + ", ".join(repr(c.text) for c in row) + "]")
        return "\n".join(out)
