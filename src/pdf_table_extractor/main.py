from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from .assign import elements_in_bounds
from .grid_builder import build_table
from .lattice import detect_lattice_region
from .options import DEFAULT_OPTIONS, DetectionMethod, DetectionOptions
from .spatial import TableRegion
from .stream import detect_stream_regions
from .structures import GraphicsElement, TextElement, sanitize_graphics, sanitize_text_elements
from .table import Table, TableValidationError

log = logging.getLogger(__name__)


@dataclass
class PageInput:
    """Elementos de una página tal como los entrega el extractor de texto/gráficos."""
    page_index: int
    elements: List[TextElement]
    graphics: List[GraphicsElement] = field(default_factory=list)


@dataclass
class ExtractionResult:
    tables: List[Table]
    cancelled: bool = False
    pages_processed: int = 0


def _region_key(region: TableRegion) -> Tuple[float, float]:
    return region.bounds.y, region.bounds.x


def detect_tables(elements: Sequence[TextElement],
                  graphics: Sequence[GraphicsElement] = (),
                  options: Optional[DetectionOptions] = None,
                  page_index: Optional[int] = None
                  ) -> List[TableRegion]:
    """Detecta las regiones de tabla de una página.

    Con `method=AUTO` se intenta primero Lattice; Stream se ejecuta sobre los
    elementos fuera de la región Lattice, o sobre todos si Lattice no encuentra
    rejilla. Las regiones se devuelven de arriba abajo y de izquierda a derecha.
    """
    options = options or DEFAULT_OPTIONS
    elements = sanitize_text_elements(elements)
    graphics = sanitize_graphics(graphics)
    if not elements:
        return []
    if page_index is None:
        page_index = elements[0].page_index

    if options.method is DetectionMethod.LATTICE:
        region = detect_lattice_region(elements, graphics, options, page_index)
        return [region] if region is not None else []

    if options.method is DetectionMethod.STREAM:
        return sorted(detect_stream_regions(elements, options, page_index), key=_region_key)

    regions: List[TableRegion] = []
    remaining = elements
    region = detect_lattice_region(elements, graphics, options, page_index) if graphics else None
    if region is not None:
        regions.append(region)
        covered = set(id(e) for e in elements_in_bounds(elements, region.bounds))
        remaining = [e for e in elements if id(e) not in covered]
    regions.extend(detect_stream_regions(remaining, options, page_index))
    return sorted(regions, key=_region_key)


def extract_table(region: TableRegion,
                  elements: Sequence[TextElement],
                  options: Optional[DetectionOptions] = None
                  ) -> Table:
    """Construye la Table de una región. Lanza TableValidationError si la rejilla no es válida."""
    return build_table(region, sanitize_text_elements(elements), options or DEFAULT_OPTIONS)


def extract_page_tables(elements: Sequence[TextElement],
                        graphics: Sequence[GraphicsElement] = (),
                        options: Optional[DetectionOptions] = None,
                        page_index: int = 0
                        ) -> List[Table]:
    options = options or DEFAULT_OPTIONS
    clean = sanitize_text_elements(elements)
    tables: List[Table] = []
    for region in detect_tables(clean, graphics, options, page_index):
        try:
            tables.append(build_table(region, clean, options))
        except TableValidationError as exc:
            log.warning("Tabla descartada en página %d (%s): %s", page_index, region, exc)
    return tables


def extract_tables_from_pages(pages: Iterable[PageInput],
                              options: Optional[DetectionOptions] = None,
                              *,
                              max_workers: Optional[int] = None,
                              cancel_event: Optional[threading.Event] = None
                              ) -> ExtractionResult:
    """Extrae las tablas de varias páginas en paralelo.

    La cancelación se comprueba al empezar cada página: las páginas no
    empezadas no aportan tablas y el resultado se marca como cancelado.
    Las tablas se devuelven ordenadas por (página, arriba, izquierda).
    """
    options = options or DEFAULT_OPTIONS
    pages = list(pages)

    def _run(page: PageInput) -> Optional[List[Table]]:
        if cancel_event is not None and cancel_event.is_set():
            return None
        log.debug("Procesando página %d (%d elementos, %d gráficos).",
                  page.page_index, len(page.elements), len(page.graphics))
        return extract_page_tables(page.elements, page.graphics, options, page.page_index)

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        results = list(pool.map(_run, pages))

    tables: List[Table] = []
    cancelled = False
    processed = 0
    for page_tables in results:
        if page_tables is None:
            cancelled = True
            continue
        processed += 1
        tables.extend(page_tables)

    tables.sort(key=lambda t: (t.page_num,
                               t.bounds.y if t.bounds else 0.0,
                               t.bounds.x if t.bounds else 0.0))
    if cancelled:
        log.warning("Extracción cancelada: %d de %d páginas procesadas.", processed, len(pages))
    else:
        log.info("%d tabla(s) extraída(s) de %d página(s).", len(tables), len(pages))
    return ExtractionResult(tables=tables, cancelled=cancelled, pages_processed=processed)
