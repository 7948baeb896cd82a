from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence
from statistics import median
from .structures import Rectangle, TextElement, bounding_box, overlap_ratio


@dataclass
class Line:
    """Una línea visual: elementos ordenados de izquierda a derecha."""
    elements: List[TextElement]
    bbox: Rectangle

    @property
    def top(self) -> float:
        return self.bbox.y

    @property
    def bottom(self) -> float:
        return self.bbox.bottom

    @property
    def yc(self) -> float:
        return self.bbox.center_y

    @property
    def x1(self) -> float:
        return self.bbox.x

    @property
    def x2(self) -> float:
        return self.bbox.right

    @property
    def text(self) -> str:
        return join_line_text(self.elements)


def _make_line(elements: List[TextElement]) -> Line:
    elements = sorted(elements, key=lambda e: (e.x, e.top))
    bbox = bounding_box(e.bounds for e in elements)
    return Line(elements=elements, bbox=bbox)


def cluster_by_vertical_overlap(elements: Sequence[TextElement], overlap: float = 0.5) -> List[Line]:
    """Group elements into lines by vertical overlap.

    Two elements share a line when their vertical ranges overlap by more than
    `overlap` of the smaller height. Returns lines sorted top to bottom.
    """
    if not elements:
        return []

    ordered = sorted(elements, key=lambda e: (e.yc, e.x))
    lines: List[List[TextElement]] = []
    current: List[TextElement] = [ordered[0]]
    band = (ordered[0].top, ordered[0].bottom)

    for elem in ordered[1:]:
        # se compara contra el último elemento y contra la banda acumulada
        last = current[-1]
        if (overlap_ratio(last.top, last.bottom, elem.top, elem.bottom) > overlap
                or overlap_ratio(band[0], band[1], elem.top, elem.bottom) > overlap):
            current.append(elem)
            band = (min(band[0], elem.top), max(band[1], elem.bottom))
        else:
            lines.append(current)
            current = [elem]
            band = (elem.top, elem.bottom)
    lines.append(current)

    result = [_make_line(group) for group in lines]
    result.sort(key=lambda ln: (ln.yc, ln.x1))
    return result


def measure_gaps(sorted_elements: Sequence[TextElement]) -> List[float]:
    """Distancias horizontales entre elementos consecutivos de una línea."""
    return [b.x - a.right for a, b in zip(sorted_elements, sorted_elements[1:])]


def line_height(line: Line) -> float:
    heights = [e.height for e in line.elements]
    return float(median(heights)) if heights else 0.0


def median_font_size(elements: Sequence[TextElement], default: float = 10.0) -> float:
    sizes = [e.effective_font_size for e in elements if e.effective_font_size > 0]
    return float(median(sizes)) if sizes else default


def estimate_word_gap(lines: Sequence[Line]) -> float:
    """Gap típico entre palabras de una misma frase.

    Mediana de los gaps positivos "pequeños" (<= 0.6 x tamaño de fuente). Si los
    elementos ya vienen agrupados en frases y no hay gaps pequeños, se usa el
    ancho aproximado de un espacio (0.25 x tamaño de fuente).
    """
    elements = [e for ln in lines for e in ln.elements]
    font = median_font_size(elements)
    small = [g for ln in lines for g in measure_gaps(ln.elements) if 0 < g <= 0.6 * font]
    if small:
        return float(median(small))
    return 0.25 * font


def join_line_text(elements: Sequence[TextElement], space_factor: float = 0.15) -> str:
    if not elements:
        return ""
    ordered = sorted(elements, key=lambda e: e.x)
    parts = [ordered[0].text]
    for prev, cur in zip(ordered, ordered[1:]):
        gap = cur.x - prev.right
        if gap > space_factor * max(prev.effective_font_size, cur.effective_font_size):
            parts.append(" ")
        parts.append(cur.text)
    return "".join(parts).strip()


def line_spacing(lines: Sequence[Line]) -> Optional[float]:
    """Mediana de la distancia entre centros de líneas consecutivas."""
    steps = [b.yc - a.yc for a, b in zip(lines, lines[1:]) if b.yc > a.yc]
    if not steps:
        return None
    return float(median(steps))
