from __future__ import annotations
from typing import List, Optional, Sequence
import logging
import math
import numpy as np

from .lines import Line

log = logging.getLogger(__name__)

# fracción de líneas que debe estar vacía en un bucket para considerarlo hueco
GAP_PRESENCE = 0.8


def projection_profile(lines: Sequence[Line], x_min: float, bucket: float, n_buckets: int) -> np.ndarray:
    """Perfil de proyección vertical: cuántas líneas tienen texto en cada bucket horizontal."""
    profile = np.zeros(n_buckets, dtype=int)
    for ln in lines:
        covered = np.zeros(n_buckets, dtype=bool)
        for elem in ln.elements:
            start = max(0, int(math.floor((elem.x - x_min) / bucket)))
            end = min(n_buckets, int(math.ceil((elem.right - x_min) / bucket)))
            covered[start:end] = True
        profile += covered
    return profile


def estimate_column_boundaries(lines: Sequence[Line],
                               min_gap_width: float,
                               header_lines: int = 0
                               ) -> Optional[List[float]]:
    """Pass 2: refina las columnas de un candidato con un perfil de proyección.

    Los buckets miden el glifo más estrecho del candidato (mínimo 1pt). Un bucket
    es hueco si como mucho un 20% de las líneas de datos tiene texto en él; las
    `header_lines` primeras líneas (cabecera absorbida) no entran en el perfil,
    así una cabecera que abarca varias columnas no borra sus huecos; las rachas de
    huecos interiores de anchura >= `min_gap_width` se convierten en límites de
    columna por su punto medio. Devuelve [x_min, cortes..., x_max], o None si
    salen menos de dos columnas.
    """
    all_elems = [e for ln in lines for e in ln.elements]
    if not all_elems:
        return None

    x_min = min(e.x for e in all_elems)
    x_max = max(e.right for e in all_elems)
    bucket = max(1.0, min(e.glyph_width for e in all_elems))
    n_buckets = max(1, int(math.ceil((x_max - x_min) / bucket)))

    body = lines[header_lines:] or lines
    profile = projection_profile(body, x_min, bucket, n_buckets)
    limit = math.floor((1.0 - GAP_PRESENCE) * len(body) + 1e-9)

    # Encontrar los valles del perfil y agrupar índices consecutivos
    empty = np.where(profile <= limit)[0]
    if len(empty) == 0:
        return None
    runs = np.split(empty, np.where(np.diff(empty) != 1)[0] + 1)

    cuts = [x_min]
    for run in runs:
        if len(run) == 0 or run[0] == 0 or run[-1] == n_buckets - 1:
            continue
        start = x_min + run[0] * bucket
        end = x_min + (run[-1] + 1) * bucket
        if end - start >= min_gap_width:
            cuts.append((start + end) / 2.0)
    cuts.append(x_max)

    if len(cuts) < 3:
        log.debug("Perfil de proyección sin huecos interiores (bucket %.2f pt).", bucket)
        return None
    return cuts
