# src/pdf_table_extractor/grid_builder.py
from __future__ import annotations
import logging
from typing import Dict, List, Sequence, Tuple

from .assign import assign_elements_to_rows, band_index, elements_in_bounds
from .lines import cluster_by_vertical_overlap, join_line_text
from .options import DEFAULT_OPTIONS, DetectionOptions
from .rows import merge_band_lines
from .spatial import RegionMethod, TableRegion
from .structures import Rectangle, TextElement, bounding_box
from .table import Cell, Table, TextAlign

log = logging.getLogger(__name__)

SPAN_TOLERANCE = 1.0
AMOUNT_VOTE = 0.7
CENTER_TOLERANCE = 0.1


def _header_row_cells(elements: Sequence[TextElement],
                      col_boundaries: Sequence[float],
                      options: DetectionOptions
                      ) -> Tuple[List[str], List[int], List[List[TextElement]]]:
    """Celdas de una fila de cabecera, con detección de celdas combinadas horizontalmente.

    Un elemento que cruza un límite interior de columna se coloca en la columna
    más a la izquierda que cubre y le da `col_span` > 1. El span se corta antes
    de cualquier columna que tenga texto propio.
    """
    n_cols = len(col_boundaries) - 1
    texts = [""] * n_cols
    spans = [1] * n_cols
    members: List[List[TextElement]] = [[] for _ in range(n_cols)]

    for line in cluster_by_vertical_overlap(elements, options.line_overlap):
        per_col: List[List[TextElement]] = [[] for _ in range(n_cols)]
        for elem in line.elements:
            first = band_index(elem.x + SPAN_TOLERANCE, col_boundaries)
            last = band_index(elem.right - SPAN_TOLERANCE, col_boundaries)
            if last > first:
                target = first
                spans[first] = max(spans[first], last - first + 1)
            else:
                target = band_index(elem.xc, col_boundaries)
            per_col[target].append(elem)
            members[target].append(elem)
        for c, cell_elems in enumerate(per_col):
            text = join_line_text(cell_elems)
            if text:
                texts[c] = f"{texts[c]}\n{text}" if texts[c] else text

    for c in range(n_cols):
        for k in range(c + 1, c + spans[c]):
            if texts[k]:
                spans[c] = k - c
                break
    return texts, spans, members


def _column_alignment(table: Table,
                      col: int,
                      col_boundaries: Sequence[float],
                      header_members: Dict[Tuple[int, int], List[TextElement]],
                      options: DetectionOptions
                      ) -> TextAlign:
    data = [table.rows[r][col].text for r in range(table.header_rows, table.row_count)]
    data = [t for t in data if t]
    if data and sum(1 for t in data if options.is_amount(t)) >= AMOUNT_VOTE * len(data):
        return TextAlign.RIGHT

    lo, hi = col_boundaries[col], col_boundaries[col + 1]
    for r in range(table.header_rows):
        cell = table.rows[r][col]
        elems = header_members.get((r, col))
        if not cell.text or cell.col_span != 1 or not elems:
            continue
        box = bounding_box(e.bounds for e in elems)
        if abs(box.center_x - (lo + hi) / 2.0) <= CENTER_TOLERANCE * (hi - lo):
            return TextAlign.CENTER
        break
    return TextAlign.LEFT


def build_table(region: TableRegion,
                elements: Sequence[TextElement],
                options: DetectionOptions = DEFAULT_OPTIONS
                ) -> Table:
    """Convierte una región detectada en la rejilla final de celdas.

    Cada elemento cuyo centro cae en la región va a la banda de fila y de
    columna que contiene su centro. El texto de una celda une las líneas
    visuales con salto de línea y las palabras de una línea con espacio.
    Lanza TableValidationError si la rejilla resultante no es válida.
    """
    cols = region.col_boundaries
    ys = region.row_boundaries
    n_cols = region.col_count
    inside = elements_in_bounds(elements, region.bounds)
    bands = assign_elements_to_rows(inside, ys)
    anchor = region.anchor_column if region.method is RegionMethod.STREAM else None

    table = Table.create(region.row_count, n_cols)
    table.page_num = region.page_index
    table.bounds = region.bounds
    table.method = region.method.value
    table.header_rows = region.header_rows

    header_members: Dict[Tuple[int, int], List[TextElement]] = {}
    for r, band in enumerate(bands):
        if r < region.header_rows:
            texts, spans, members = _header_row_cells(band, cols, options)
            for c, elems in enumerate(members):
                header_members[(r, c)] = elems
        else:
            lines = cluster_by_vertical_overlap(band, options.line_overlap)
            texts = merge_band_lines(lines, cols, anchor)
            spans = [1] * n_cols
        for c in range(n_cols):
            span = spans[c]
            bounds = Rectangle.from_edges(cols[c], ys[r], cols[c + span], ys[r + 1])
            table.set_cell(r, c, Cell(text=texts[c], row=r, column=c, col_span=span, bounds=bounds))

    for c in range(n_cols):
        align = _column_alignment(table, c, cols, header_members, options)
        for r in range(table.row_count):
            table.rows[r][c] = table.rows[r][c].with_alignment(align)

    table.validate()
    log.debug("Tabla %d x %d (%s) en página %d, %d celdas con texto.",
              table.row_count, table.col_count, table.method, table.page_num,
              table.non_empty_cell_count())
    return table
