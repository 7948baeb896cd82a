# src/pdf_table_extractor/parser.py
from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Any, List, Mapping, Optional

from bs4 import BeautifulSoup

from .main import PageInput
from .structures import GraphicsElement, Rectangle, TextElement

log = logging.getLogger(__name__)


def _load_soup(text: str) -> BeautifulSoup:
    """
    Intenta XML (lxml-xml) y, si no hay nodos <page>, fallback a HTML (lxml).
    """
    soup_xml = BeautifulSoup(text, "lxml-xml")
    if soup_xml.find("page"):
        return soup_xml
    return BeautifulSoup(text, "lxml")


def _float_attr(tag, name: str) -> Optional[float]:
    # el parser HTML pasa los atributos a minúsculas
    try:
        return float(tag.get(name, tag.get(name.lower())))
    except (TypeError, ValueError):
        return None


def parse_bbox_xhtml(text: str) -> List[PageInput]:
    """
    Lee la salida de `pdftotext -bbox` (o `-bbox-layout`): un <page> por página
    y un <word xMin yMin xMax yMax> por palabra. El origen ya está arriba a la
    izquierda. No hay información de fuente: el tamaño se aproxima con la altura.
    """
    soup = _load_soup(text)
    pages: List[PageInput] = []
    for pi, page in enumerate(soup.find_all("page")):
        elements: List[TextElement] = []
        for w in page.find_all("word"):
            coords = [_float_attr(w, k) for k in ("xMin", "yMin", "xMax", "yMax")]
            if any(c is None for c in coords):
                log.warning("Palabra sin bbox completo en página %d: %r", pi, w.get_text())
                continue
            x1, y1, x2, y2 = coords
            word = (w.get_text() or "").strip()
            if not word:
                continue
            elements.append(TextElement(text=word,
                                        bounds=Rectangle.from_edges(x1, y1, x2, y2),
                                        baseline=y2,
                                        font_size=y2 - y1,
                                        page_index=pi))
        pages.append(PageInput(page_index=pi, elements=elements))
    return pages


def _element_from_dict(data: Mapping[str, Any], page_index: int) -> TextElement:
    return TextElement(text=str(data["text"]),
                       bounds=Rectangle(float(data["x"]), float(data["y"]),
                                        float(data["width"]), float(data["height"])),
                       baseline=float(data.get("baseline", 0.0)),
                       font_size=float(data.get("font_size", 0.0)),
                       bold=bool(data.get("bold", False)),
                       page_index=page_index)


def _graphic_from_dict(data: Mapping[str, Any], page_index: int) -> GraphicsElement:
    kind = str(data.get("type", "line")).lower()
    stroke = float(data.get("stroke_width", 1.0))
    if kind == "line":
        return GraphicsElement.line(float(data["x1"]), float(data["y1"]),
                                    float(data["x2"]), float(data["y2"]),
                                    stroke_width=stroke, page_index=page_index)
    if kind in ("rect", "rectangle"):
        return GraphicsElement.rectangle(float(data["x"]), float(data["y"]),
                                         float(data["width"]), float(data["height"]),
                                         stroke_width=stroke, page_index=page_index)
    raise ValueError(f"tipo de gráfico desconocido: {kind}")


def parse_json_pages(data: Any) -> List[PageInput]:
    """
    Volcado JSON de elementos: `{"pages": [...]}` o directamente la lista de páginas.
    Cada página: {"page_index", "elements": [{text, x, y, width, height, font_size, bold, baseline}],
    "graphics": [{type: line, x1, y1, x2, y2} | {type: rectangle, x, y, width, height}]}.
    Los elementos mal formados se descartan con un aviso.
    """
    raw_pages = data.get("pages", []) if isinstance(data, dict) else data
    pages: List[PageInput] = []
    for pi, raw in enumerate(raw_pages):
        page_index = int(raw.get("page_index", pi))
        elements: List[TextElement] = []
        for item in raw.get("elements", []):
            try:
                elements.append(_element_from_dict(item, page_index))
            except (KeyError, TypeError, ValueError) as exc:
                log.warning("Elemento de texto inválido en página %d descartado: %s", page_index, exc)
        graphics: List[GraphicsElement] = []
        for item in raw.get("graphics", []):
            try:
                graphics.append(_graphic_from_dict(item, page_index))
            except (KeyError, TypeError, ValueError) as exc:
                log.warning("Elemento gráfico inválido en página %d descartado: %s", page_index, exc)
        pages.append(PageInput(page_index=page_index, elements=elements, graphics=graphics))
    return pages


def load_pages(path: str) -> List[PageInput]:
    """Carga las páginas de un volcado JSON o de un XHTML de `pdftotext -bbox`."""
    p = Path(path)
    with open(p, "r", encoding="utf-8") as f:
        raw = f.read()
    if p.suffix.lower() == ".json":
        pages = parse_json_pages(json.loads(raw))
    else:
        pages = parse_bbox_xhtml(raw)
    log.info("Cargadas %d página(s) desde %s", len(pages), path)
    return pages
