from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple
import logging
import math

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Rectangle:
    """Caja alineada a los ejes en puntos de página.

    Origen arriba a la izquierda: `y` es el borde superior y crece hacia abajo.
    """
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_edges(cls, x1: float, y1: float, x2: float, y2: float) -> "Rectangle":
        return cls(x=x1, y=y1, width=x2 - x1, height=y2 - y1)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2.0

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2.0

    def contains(self, x: float, y: float) -> bool:
        return self.x <= x <= self.right and self.y <= y <= self.bottom

    def intersects(self, other: "Rectangle") -> bool:
        return (self.x < other.right and other.x < self.right
                and self.y < other.bottom and other.y < self.bottom)

    def union(self, other: "Rectangle") -> "Rectangle":
        return Rectangle.from_edges(min(self.x, other.x), min(self.y, other.y),
                                    max(self.right, other.right), max(self.bottom, other.bottom))

    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in (self.x, self.y, self.width, self.height))

    def __str__(self) -> str:
        return f"Rectangle{{x={self.x:.2f}, y={self.y:.2f}, w={self.width:.2f}, h={self.height:.2f}}}"


def bounding_box(rects: Iterable[Rectangle]) -> Optional[Rectangle]:
    box: Optional[Rectangle] = None
    for r in rects:
        box = r if box is None else box.union(r)
    return box


def overlap_ratio(a1: float, a2: float, b1: float, b2: float) -> float:
    """Solape de dos intervalos relativo al más corto de los dos."""
    inter = max(0.0, min(a2, b2) - max(a1, b1))
    denom = min(a2 - a1, b2 - b1)
    if denom <= 0:
        return 0.0
    return inter / denom


@dataclass(frozen=True)
class TextElement:
    """Un tramo de glifos posicionado, tal como lo entrega el extractor de texto."""
    text: str
    bounds: Rectangle
    baseline: float = 0.0
    font_size: float = 0.0
    bold: bool = False
    page_index: int = 0

    @property
    def x(self) -> float:
        return self.bounds.x

    @property
    def right(self) -> float:
        return self.bounds.right

    @property
    def top(self) -> float:
        return self.bounds.y

    @property
    def bottom(self) -> float:
        return self.bounds.bottom

    @property
    def width(self) -> float:
        return self.bounds.width

    @property
    def height(self) -> float:
        return self.bounds.height

    @property
    def xc(self) -> float:
        return self.bounds.center_x

    @property
    def yc(self) -> float:
        return self.bounds.center_y

    @property
    def effective_font_size(self) -> float:
        # sin tamaño declarado, la altura de la caja es la mejor aproximación
        return self.font_size if self.font_size > 0 else self.height

    @property
    def glyph_width(self) -> float:
        n = len(self.text)
        return self.width / n if n else self.width


class GraphicsKind(str, Enum):
    LINE = "line"
    RECTANGLE = "rectangle"


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class GraphicsElement:
    """Primitiva vectorial: segmento (dos puntos) o rectángulo (bounds)."""
    kind: GraphicsKind
    points: Tuple[Point, ...] = ()
    bounds: Optional[Rectangle] = None
    stroke_width: float = 1.0
    page_index: int = 0

    @classmethod
    def line(cls, x1: float, y1: float, x2: float, y2: float,
             stroke_width: float = 1.0, page_index: int = 0) -> "GraphicsElement":
        return cls(kind=GraphicsKind.LINE, points=(Point(x1, y1), Point(x2, y2)),
                   stroke_width=stroke_width, page_index=page_index)

    @classmethod
    def rectangle(cls, x: float, y: float, width: float, height: float,
                  stroke_width: float = 1.0, page_index: int = 0) -> "GraphicsElement":
        return cls(kind=GraphicsKind.RECTANGLE, bounds=Rectangle(x, y, width, height),
                   stroke_width=stroke_width, page_index=page_index)

    def coordinates(self) -> List[float]:
        coords: List[float] = []
        for p in self.points:
            coords.extend((p.x, p.y))
        if self.bounds is not None:
            coords.extend((self.bounds.x, self.bounds.y, self.bounds.width, self.bounds.height))
        return coords


def sanitize_text_elements(elements: Sequence[TextElement]) -> List[TextElement]:
    """Descarta elementos mal formados (coordenadas no finitas, área nula, texto vacío)."""
    clean: List[TextElement] = []
    for elem in elements:
        if not elem.bounds.is_finite() or not math.isfinite(elem.font_size):
            log.warning("Elemento de texto con coordenadas no finitas descartado: %r", elem.text)
            continue
        if elem.width <= 0 or elem.height <= 0:
            log.warning("Elemento de texto con área nula descartado: %r (%s)", elem.text, elem.bounds)
            continue
        text = elem.text.strip()
        if not text:
            continue
        if text != elem.text:
            elem = TextElement(text=text, bounds=elem.bounds, baseline=elem.baseline,
                               font_size=elem.font_size, bold=elem.bold, page_index=elem.page_index)
        clean.append(elem)
    return clean


def sanitize_graphics(graphics: Sequence[GraphicsElement]) -> List[GraphicsElement]:
    clean: List[GraphicsElement] = []
    for g in graphics:
        if not all(math.isfinite(v) for v in g.coordinates()):
            log.warning("Elemento gráfico con coordenadas no finitas descartado: %s", g.kind.value)
            continue
        if g.kind is GraphicsKind.LINE and len(g.points) != 2:
            log.warning("Segmento con %d puntos descartado (se esperan 2).", len(g.points))
            continue
        if g.kind is GraphicsKind.RECTANGLE and g.bounds is None:
            log.warning("Rectángulo sin bounds descartado.")
            continue
        clean.append(g)
    return clean
