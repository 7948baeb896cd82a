# src/pdf_table_extractor/gaps.py
from __future__ import annotations
from dataclasses import dataclass
from statistics import median
from typing import List, Optional, Sequence, Tuple
import logging

from .lines import Line, estimate_word_gap, line_height, line_spacing
from .options import DetectionOptions
from .structures import bounding_box

log = logging.getLogger(__name__)

Interval = Tuple[float, float]

MAX_HEADER_LINES = 2
PARAGRAPH_BREAK_FACTOR = 2.0


@dataclass
class TableCandidate:
    """Resultado del Pass 1: líneas contiguas con un patrón de columnas repetido."""
    lines: List[Line]
    channels: List[Interval]
    header_lines: int = 0

    @property
    def column_count(self) -> int:
        return len(self.channels) + 1

    @property
    def gap_positions(self) -> List[float]:
        return [(lo + hi) / 2.0 for lo, hi in self.channels]


def column_gap_threshold(lines: Sequence[Line], options: DetectionOptions) -> float:
    return options.gap_factor * estimate_word_gap(lines)


def column_gaps(line: Line, threshold: float) -> List[Interval]:
    """Huecos horizontales de una línea mayores que `threshold` (candidatos a separar columnas)."""
    gaps: List[Interval] = []
    elems = line.elements
    if not elems:
        return gaps
    right = elems[0].right
    for elem in elems[1:]:
        if elem.x - right > threshold:
            gaps.append((right, elem.x))
        right = max(right, elem.right)
    return gaps


def match_channels(channels: Sequence[Interval],
                   gaps: Sequence[Interval],
                   tolerance: float
                   ) -> Optional[List[Interval]]:
    """Intersecta los canales de blanco del patrón con los gaps de una línea.

    Devuelve los canales actualizados, o None si el número de gaps difiere o
    algún gap no solapa (con tolerancia) su canal.
    """
    if len(channels) != len(gaps):
        return None
    merged: List[Interval] = []
    for (a1, a2), (b1, b2) in zip(channels, gaps):
        if b1 > a2 + tolerance or a1 > b2 + tolerance:
            return None
        lo, hi = max(a1, b1), min(a2, b2)
        if lo > hi:
            lo, hi = hi, lo
        merged.append((lo, hi))
    return merged


def is_continuation_line(line: Line, gaps: Sequence[Interval], channels: Sequence[Interval]) -> bool:
    """Línea con menos gaps cuyo texto no atraviesa ningún canal (texto envuelto de una celda)."""
    if len(gaps) >= len(channels):
        return False
    for elem in line.elements:
        for lo, hi in channels:
            if elem.x < lo and elem.right > hi:
                return False
    return True


def _is_paragraph_break(prev: Line, cur: Line, spacing: float) -> bool:
    return (cur.yc - prev.yc) > PARAGRAPH_BREAK_FACTOR * spacing


def _run_spacing(lines: Sequence[Line], fallback: float) -> float:
    spacing = line_spacing(lines)
    return spacing if spacing else fallback


def find_table_candidates(lines: Sequence[Line], options: DetectionOptions) -> List[TableCandidate]:
    """Pass 1: análisis de gaps.

    Un candidato empieza donde `min_repeat_lines` líneas muestran el mismo número
    de gaps de columna en posiciones consistentes, y termina en la primera línea
    que rompe el patrón o tras un salto de párrafo. Las líneas de continuación
    (texto envuelto) se absorben sin contar para el mínimo; hasta dos líneas
    justo encima se añaden como cabecera si encajan en la extensión horizontal.
    """
    if len(lines) < options.min_repeat_lines:
        return []

    threshold = column_gap_threshold(lines, options)
    tol = options.column_tolerance
    line_gaps = [column_gaps(ln, threshold) for ln in lines]
    heights = [line_height(ln) for ln in lines]
    page_spacing = line_spacing(lines) or 1.2 * float(median(heights))
    log.debug("Umbral de gap de columna: %.2f pt (espaciado de página %.2f pt)", threshold, page_spacing)

    candidates: List[TableCandidate] = []
    consumed_until = -1
    i = 0
    while i < len(lines):
        if not line_gaps[i]:
            i += 1
            continue

        run = [i]
        channels = list(line_gaps[i])
        pattern_lines = 1
        j = i + 1
        while j < len(lines):
            run_lines = [lines[k] for k in run]
            spacing = _run_spacing(run_lines, page_spacing)
            if _is_paragraph_break(lines[run[-1]], lines[j], spacing):
                break
            matched = match_channels(channels, line_gaps[j], tol)
            if matched is not None:
                channels = matched
                run.append(j)
                pattern_lines += 1
            elif is_continuation_line(lines[j], line_gaps[j], channels):
                run.append(j)
            else:
                break
            j += 1

        if pattern_lines < options.min_repeat_lines:
            i += 1
            continue

        header = _header_lines_above(lines, line_gaps, run, consumed_until, threshold, page_spacing)
        indices = header + run
        cand = TableCandidate(lines=[lines[k] for k in indices], channels=channels,
                              header_lines=len(header))
        log.debug("Candidato de tabla: líneas %d-%d, %d columnas provisionales en %s",
                  indices[0], indices[-1], cand.column_count,
                  [round(p, 1) for p in cand.gap_positions])
        candidates.append(cand)
        consumed_until = run[-1]
        i = run[-1] + 1

    return candidates


def _header_lines_above(lines: Sequence[Line],
                        line_gaps: Sequence[Sequence[Interval]],
                        run: Sequence[int],
                        consumed_until: int,
                        threshold: float,
                        page_spacing: float
                        ) -> List[int]:
    body = [lines[k] for k in run]
    extent = bounding_box(ln.bbox for ln in body)
    spacing = _run_spacing(body, page_spacing)
    header: List[int] = []
    first = run[0]
    k = first - 1
    while k > consumed_until and len(header) < MAX_HEADER_LINES:
        line = lines[k]
        below = lines[header[0]] if header else lines[first]
        if _is_paragraph_break(line, below, spacing):
            break
        if not line_gaps[k]:
            break
        if line.x1 < extent.x - threshold or line.x2 > extent.right + threshold:
            break
        header.insert(0, k)
        k -= 1
    return header
