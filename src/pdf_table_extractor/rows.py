# src/pdf_table_extractor/rows.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple
import logging

from .assign import assign_elements_to_columns
from .lines import Line, join_line_text
from .options import DetectionOptions
from .structures import TextElement

log = logging.getLogger(__name__)


@dataclass
class LogicalRow:
    """Una fila lógica: una o más líneas físicas fusionadas."""
    lines: List[Line]
    cells: List[str]
    anchor_text: str = ""
    elements: List[TextElement] = field(default_factory=list)

    @property
    def top(self) -> float:
        return min(ln.top for ln in self.lines)

    @property
    def bottom(self) -> float:
        return max(ln.bottom for ln in self.lines)

    @property
    def bold_ratio(self) -> float:
        return bold_ratio(self.elements)


def bold_ratio(elements: Sequence[TextElement]) -> float:
    if not elements:
        return 0.0
    return sum(1 for e in elements if e.bold) / len(elements)


def line_cell_texts(line: Line, col_boundaries: Sequence[float]) -> List[str]:
    return [join_line_text(c) for c in assign_elements_to_columns(line.elements, col_boundaries)]


def find_anchor_column(per_line_cells: Sequence[Sequence[str]],
                       options: DetectionOptions) -> Optional[int]:
    """Columna ancla: la más a la derecha cuyas celdas son importes o fechas.

    Se exige coincidencia en al menos la mitad de las líneas (y en dos como mínimo).
    """
    if not per_line_cells:
        return None
    n_lines = len(per_line_cells)
    n_cols = len(per_line_cells[0])
    for col in range(n_cols - 1, -1, -1):
        matches = sum(1 for cells in per_line_cells if options.is_anchor_value(cells[col]))
        if matches >= 2 and matches >= 0.5 * n_lines:
            return col
    return None


def _nearest_text_column(texts: Sequence[str], anchor: int) -> Optional[int]:
    candidates = [c for c, t in enumerate(texts) if t and c != anchor]
    if not candidates:
        return None
    # a igual distancia se prefiere la columna de la izquierda
    return min(candidates, key=lambda c: (abs(c - anchor), c))


def merge_band_lines(lines: Sequence[Line],
                     col_boundaries: Sequence[float],
                     anchor: Optional[int] = None
                     ) -> List[str]:
    """Fusiona las líneas de una fila lógica en textos de celda.

    Cada línea se reparte por columnas; el texto de una misma celda en líneas
    sucesivas se une con salto de línea. Con columna ancla, el texto suelto que
    una línea de continuación deja en la columna ancla se concatena a la celda
    con texto más cercana de esa línea (o de la fila, si la línea no tiene otra).
    """
    n_cols = len(col_boundaries) - 1
    cells = [""] * n_cols
    for i, line in enumerate(lines):
        texts = line_cell_texts(line, col_boundaries)
        if i > 0 and anchor is not None and texts[anchor]:
            stray = texts[anchor]
            target = _nearest_text_column(texts, anchor)
            if target is not None:
                texts[anchor] = ""
                texts[target] = f"{texts[target]} {stray}"
            else:
                target = _nearest_text_column(cells, anchor)
                if target is not None:
                    texts[anchor] = ""
                    cells[target] = f"{cells[target]}\n{stray}"
        for c, text in enumerate(texts):
            if text:
                cells[c] = f"{cells[c]}\n{text}" if cells[c] else text
    return cells


def merge_multiline_rows(lines: Sequence[Line],
                         col_boundaries: Sequence[float],
                         options: DetectionOptions
                         ) -> Tuple[List[LogicalRow], Optional[int]]:
    """Pass 3: discrimina filas multilínea con la columna ancla.

    Reglas:
      - Sin columna ancla cada línea es una fila.
      - Una línea cuya celda ancla coincide con el patrón abre una fila nueva.
      - Si no coincide es continuación de la fila anterior.
      - Una continuación sin fila previa se conserva como fila propia.
    """
    if not lines:
        return [], None

    per_line = [line_cell_texts(ln, col_boundaries) for ln in lines]
    anchor = find_anchor_column(per_line, options)
    log.debug("Columna ancla: %s", anchor)

    groups: List[List[int]] = []
    for idx, texts in enumerate(per_line):
        if anchor is None or not groups or options.is_anchor_value(texts[anchor]):
            groups.append([idx])
        else:
            groups[-1].append(idx)

    rows: List[LogicalRow] = []
    for group in groups:
        group_lines = [lines[i] for i in group]
        rows.append(LogicalRow(
            lines=group_lines,
            cells=merge_band_lines(group_lines, col_boundaries, anchor),
            anchor_text=per_line[group[0]][anchor] if anchor is not None else "",
            elements=[e for ln in group_lines for e in ln.elements],
        ))
    if len(rows) != len(lines):
        log.debug("Fusionadas %d líneas en %d filas lógicas.", len(lines), len(rows))
    return rows, anchor


def classify_header_rows(rows: Sequence[LogicalRow],
                         anchor: Optional[int],
                         options: DetectionOptions,
                         max_header_rows: int = 2
                         ) -> int:
    """Pass 4: número de filas de cabecera al inicio de la tabla.

    Una fila es cabecera si está entre las `max_header_rows` primeras y además
    es mayoritariamente negrita frente a las filas de abajo, o su celda ancla no
    coincide con el patrón mientras que sí coincide en >=80% de las siguientes.
    La clasificación se detiene en la primera fila que no cumple.
    """
    headers = 0
    for i in range(min(max_header_rows, len(rows))):
        row = rows[i]
        below = rows[i + 1:]
        if not below:
            break

        below_elements = [e for r in below for e in r.elements]
        is_bold_header = row.bold_ratio >= 0.5 and bold_ratio(below_elements) < 0.5

        is_anchor_header = False
        if anchor is not None and not options.is_anchor_value(row.anchor_text):
            matches = sum(1 for r in below if options.is_anchor_value(r.anchor_text))
            is_anchor_header = matches >= 0.8 * len(below)

        if not (is_bold_header or is_anchor_header):
            break
        headers += 1
    return headers


def row_boundaries_from_rows(rows: Sequence[LogicalRow]) -> List[float]:
    """Límites y entre filas lógicas: punto medio del hueco, o de los centros si se solapan."""
    if not rows:
        return []
    bounds = [rows[0].top]
    for prev, cur in zip(rows, rows[1:]):
        if prev.bottom < cur.top:
            cut = (prev.bottom + cur.top) / 2.0
        else:
            cut = (prev.lines[-1].yc + cur.lines[0].yc) / 2.0
        bounds.append(cut)
    bounds.append(rows[-1].bottom)
    return bounds
