from __future__ import annotations
from typing import List, Sequence
import numpy as np

from .structures import Rectangle, TextElement


def band_index(coord: float, boundaries: Sequence[float]) -> int:
    """Index of the band [b_i, b_i+1) that contains `coord`; nearest band when outside."""
    n = len(boundaries) - 1
    for i in range(n):
        lo, hi = boundaries[i], boundaries[i + 1]
        if lo <= coord < hi or (i == n - 1 and coord == hi):
            return i
    dists = [min(abs(coord - boundaries[i]), abs(coord - boundaries[i + 1])) for i in range(n)]
    return int(np.argmin(dists))


def assign_elements_to_columns(elements: Sequence[TextElement],
                               col_boundaries: Sequence[float]
                               ) -> List[List[TextElement]]:
    """Assign each element to the column containing its horizontal center."""
    cells: List[List[TextElement]] = [[] for _ in range(len(col_boundaries) - 1)]
    if not cells:
        return cells
    for elem in elements:
        cells[band_index(elem.xc, col_boundaries)].append(elem)
    for c in cells:
        c.sort(key=lambda e: e.x)
    return cells


def assign_elements_to_rows(elements: Sequence[TextElement],
                            row_boundaries: Sequence[float]
                            ) -> List[List[TextElement]]:
    rows: List[List[TextElement]] = [[] for _ in range(len(row_boundaries) - 1)]
    if not rows:
        return rows
    for elem in elements:
        rows[band_index(elem.yc, row_boundaries)].append(elem)
    return rows


def elements_in_bounds(elements: Sequence[TextElement], bounds: Rectangle) -> List[TextElement]:
    return [e for e in elements if bounds.contains(e.xc, e.yc)]
