# src/pdf_table_extractor/lattice.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple
import logging

from .assign import assign_elements_to_rows, elements_in_bounds
from .lines import cluster_by_vertical_overlap
from .options import DetectionOptions
from .rows import LogicalRow, classify_header_rows, find_anchor_column, line_cell_texts, merge_band_lines
from .spatial import RegionMethod, TableRegion
from .structures import GraphicsElement, GraphicsKind, Rectangle, TextElement

log = logging.getLogger(__name__)

MIN_RULING_LENGTH = 10.0

Segment = Tuple[float, float, float, float]


@dataclass(frozen=True)
class RulingLine:
    """Segmento horizontal o vertical normalizado: `lo <= hi` sobre el eje principal."""
    position: float
    lo: float
    hi: float
    horizontal: bool

    @property
    def length(self) -> float:
        return self.hi - self.lo

    def intersects(self, other: "RulingLine", tolerance: float = 0.0) -> bool:
        if self.horizontal == other.horizontal:
            return False
        return (self.lo - tolerance <= other.position <= self.hi + tolerance
                and other.lo - tolerance <= self.position <= other.hi + tolerance)

    def __str__(self) -> str:
        kind = "H" if self.horizontal else "V"
        return f"RulingLine{{{kind} at {self.position:.2f}, {self.lo:.2f}..{self.hi:.2f}}}"


def _segments(g: GraphicsElement, tolerance: float) -> Iterable[Segment]:
    if g.kind is GraphicsKind.LINE:
        p1, p2 = g.points
        yield p1.x, p1.y, p2.x, p2.y
        return
    b = g.bounds
    if b.height <= 2 * tolerance:
        # rectángulo fino = una sola línea horizontal
        yield b.x, b.center_y, b.right, b.center_y
    elif b.width <= 2 * tolerance:
        yield b.center_x, b.y, b.center_x, b.bottom
    else:
        yield b.x, b.y, b.right, b.y
        yield b.x, b.bottom, b.right, b.bottom
        yield b.x, b.y, b.x, b.bottom
        yield b.right, b.y, b.right, b.bottom


def detect_ruling_lines(graphics: Sequence[GraphicsElement],
                        tolerance: float = 2.0,
                        min_length: float = MIN_RULING_LENGTH
                        ) -> List[RulingLine]:
    """Extrae líneas horizontales/verticales de los gráficos y fusiona las colineales.

    Las oblicuas (fuera de tolerancia en ambos ejes) y las más cortas que
    `min_length` se ignoran.
    """
    rulings: List[RulingLine] = []
    for g in graphics:
        for x1, y1, x2, y2 in _segments(g, tolerance):
            if abs(y1 - y2) <= tolerance:
                ruling = RulingLine(position=(y1 + y2) / 2.0, lo=min(x1, x2), hi=max(x1, x2), horizontal=True)
            elif abs(x1 - x2) <= tolerance:
                ruling = RulingLine(position=(x1 + x2) / 2.0, lo=min(y1, y2), hi=max(y1, y2), horizontal=False)
            else:
                continue
            if ruling.length < min_length:
                continue
            rulings.append(ruling)
    return merge_collinear(rulings, tolerance)


def merge_collinear(rulings: Sequence[RulingLine], tolerance: float) -> List[RulingLine]:
    """Une tramos de la misma línea lógica (misma posición, solapados o casi contiguos)."""
    merged: List[RulingLine] = []
    for horizontal in (True, False):
        group = sorted((r for r in rulings if r.horizontal == horizontal), key=lambda r: (r.position, r.lo))
        for cluster in _cluster_by_position(group, tolerance):
            cluster.sort(key=lambda r: r.lo)
            current = cluster[0]
            for nxt in cluster[1:]:
                if nxt.lo - current.hi <= 2 * tolerance:
                    current = RulingLine(position=(current.position + nxt.position) / 2.0,
                                         lo=current.lo, hi=max(current.hi, nxt.hi),
                                         horizontal=horizontal)
                else:
                    merged.append(current)
                    current = nxt
            merged.append(current)
    return merged


def _cluster_by_position(rulings: Sequence[RulingLine], tolerance: float) -> List[List[RulingLine]]:
    clusters: List[List[RulingLine]] = []
    for r in rulings:
        if clusters and r.position - clusters[-1][-1].position <= tolerance:
            clusters[-1].append(r)
        else:
            clusters.append([r])
    return clusters


def dedupe_coordinates(values: Iterable[float], tolerance: float) -> List[float]:
    """Agrupa coordenadas a menos de `tolerance` y devuelve la media de cada grupo, ordenadas."""
    groups: List[List[float]] = []
    for v in sorted(values):
        if groups and v - groups[-1][-1] <= tolerance:
            groups[-1].append(v)
        else:
            groups.append([v])
    return [sum(g) / len(g) for g in groups]


def _covers_span(ruling: RulingLine, boundaries: Sequence[float], tolerance: float) -> bool:
    for lo, hi in zip(boundaries, boundaries[1:]):
        if ruling.lo <= lo + tolerance and ruling.hi >= hi - tolerance:
            return True
    return False


def build_grid(rulings: Sequence[RulingLine], tolerance: float) -> Tuple[List[float], List[float]]:
    """Coordenadas x (columnas) e y (filas) de la rejilla formada por las líneas.

    Se filtra de forma iterativa: una horizontal debe cubrir al menos un tramo
    completo entre verticales, y una vertical al menos un tramo entre horizontales.
    """
    hs = [r for r in rulings if r.horizontal]
    vs = [r for r in rulings if not r.horizontal]
    xs = dedupe_coordinates((v.position for v in vs), tolerance)
    ys = dedupe_coordinates((h.position for h in hs), tolerance)
    while len(xs) >= 2 and len(ys) >= 2:
        hs = [h for h in hs if _covers_span(h, xs, tolerance)]
        vs = [v for v in vs if _covers_span(v, ys, tolerance)]
        new_xs = dedupe_coordinates((v.position for v in vs), tolerance)
        new_ys = dedupe_coordinates((h.position for h in hs), tolerance)
        if new_xs == xs and new_ys == ys:
            break
        xs, ys = new_xs, new_ys
    return xs, ys


def detect_lattice_region(elements: Sequence[TextElement],
                          graphics: Sequence[GraphicsElement],
                          options: DetectionOptions,
                          page_index: int = 0
                          ) -> Optional[TableRegion]:
    """Detección Lattice: tabla delimitada por líneas.

    Devuelve None (resultado normal) si no hay rejilla de al menos 2x2 líneas o
    si dentro de ella hay menos elementos de texto que celdas.
    """
    tol = options.ruling_tolerance
    rulings = detect_ruling_lines(graphics, tol)
    if not rulings:
        return None

    xs, ys = build_grid(rulings, tol)
    if len(xs) < 2 or len(ys) < 2:
        log.debug("Lattice: rejilla insuficiente (%d x, %d y).", len(xs), len(ys))
        return None

    bounds = Rectangle.from_edges(xs[0], ys[0], xs[-1], ys[-1])
    inside = elements_in_bounds(elements, bounds)
    n_cells = (len(xs) - 1) * (len(ys) - 1)
    if len(inside) < n_cells:
        log.debug("Lattice: %d elementos para %d celdas, se descarta.", len(inside), n_cells)
        return None

    header_rows, anchor = _lattice_headers(inside, xs, ys, options)
    if header_rows >= len(ys) - 1:
        log.debug("Lattice: todas las filas son cabecera, se descarta.")
        return None

    log.info("Página %d: región Lattice %d x %d.", page_index, len(ys) - 1, len(xs) - 1)
    return TableRegion(bounds=bounds,
                       row_boundaries=ys,
                       col_boundaries=xs,
                       method=RegionMethod.LATTICE,
                       page_index=page_index,
                       header_rows=header_rows,
                       anchor_column=anchor)


def _lattice_headers(elements: Sequence[TextElement],
                     xs: Sequence[float],
                     ys: Sequence[float],
                     options: DetectionOptions
                     ) -> Tuple[int, Optional[int]]:
    # las filas de una rejilla ya están delimitadas: cada banda es una fila lógica
    bands = assign_elements_to_rows(elements, ys)
    band_lines = [cluster_by_vertical_overlap(band, options.line_overlap) for band in bands]
    first_line_cells = [line_cell_texts(lines[0], xs) if lines else [""] * (len(xs) - 1)
                        for lines in band_lines]
    anchor = find_anchor_column(first_line_cells, options)
    rows = [LogicalRow(lines=lines,
                       cells=merge_band_lines(lines, xs),
                       anchor_text=first[anchor] if anchor is not None else "",
                       elements=list(band))
            for band, lines, first in zip(bands, band_lines, first_line_cells)]
    return classify_header_rows(rows, anchor, options), anchor
