# src/pdf_table_extractor/stream.py
from __future__ import annotations
from typing import List, Optional, Sequence
import logging

from .columns import estimate_column_boundaries
from .gaps import TableCandidate, column_gap_threshold, find_table_candidates
from .lines import cluster_by_vertical_overlap
from .options import DetectionOptions
from .rows import classify_header_rows, merge_multiline_rows, row_boundaries_from_rows
from .spatial import RegionMethod, TableRegion
from .structures import Rectangle, TextElement

log = logging.getLogger(__name__)


def detect_stream_regions(elements: Sequence[TextElement],
                          options: DetectionOptions,
                          page_index: int = 0
                          ) -> List[TableRegion]:
    """Detección Stream (tablas sin bordes) en cuatro pasadas.

    1. gaps: candidatos por patrón de huecos repetido
    2. perfil de proyección: límites de columna
    3. columna ancla: fusión de filas multilínea
    4. cabeceras: negrita / ancla
    """
    lines = cluster_by_vertical_overlap(elements, options.line_overlap)
    if len(lines) < options.min_repeat_lines:
        return []

    threshold = column_gap_threshold(lines, options)
    candidates = find_table_candidates(lines, options)
    regions: List[TableRegion] = []
    for cand in candidates:
        region = _candidate_to_region(cand, threshold, options, page_index)
        if region is not None:
            regions.append(region)
    log.info("Página %d: %d candidato(s) Stream, %d región(es) aceptada(s).",
             page_index, len(candidates), len(regions))
    return regions


def _candidate_to_region(cand: TableCandidate,
                         threshold: float,
                         options: DetectionOptions,
                         page_index: int
                         ) -> Optional[TableRegion]:
    cols = estimate_column_boundaries(cand.lines, min_gap_width=0.5 * threshold,
                                      header_lines=cand.header_lines)
    if cols is None:
        log.debug("Candidato descartado: menos de 2 columnas en el perfil de proyección.")
        return None
    if len(cols) - 1 != cand.column_count:
        log.debug("Pass 1 sugería %d columnas; el perfil encuentra %d.", cand.column_count, len(cols) - 1)

    rows, anchor = merge_multiline_rows(cand.lines, cols, options)
    header_rows = classify_header_rows(rows, anchor, options)
    if header_rows >= len(rows):
        log.debug("Candidato descartado: todas las filas son cabecera.")
        return None

    row_bounds = row_boundaries_from_rows(rows)
    bounds = Rectangle.from_edges(cols[0], row_bounds[0], cols[-1], row_bounds[-1])
    try:
        return TableRegion(bounds=bounds,
                           row_boundaries=row_bounds,
                           col_boundaries=cols,
                           method=RegionMethod.STREAM,
                           page_index=page_index,
                           header_rows=header_rows,
                           anchor_column=anchor)
    except ValueError as exc:
        log.warning("Región Stream inválida en página %d: %s", page_index, exc)
        return None
