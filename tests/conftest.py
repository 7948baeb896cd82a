"""Shared fixtures: synthetic pages built from positioned text elements.

Coordinates are page points with the origin at the top-left corner. Every
element is 10pt high and 5pt per character wide unless stated otherwise.
"""

from typing import List

import pytest

from pdf_table_extractor.structures import GraphicsElement, Rectangle, TextElement


def el(text: str, x: float, y: float, width: float = None, height: float = 10.0,
       bold: bool = False, page: int = 0) -> TextElement:
    if width is None:
        width = 5.0 * len(text)
    return TextElement(text=text, bounds=Rectangle(x, y, width, height),
                       baseline=y + height, font_size=height, bold=bold, page_index=page)


def simple_rows(n: int, page: int = 0, top: float = 100.0) -> List[TextElement]:
    """n lines of ("Alpha", "100") with a wide gap between the two columns."""
    out = []
    for i in range(n):
        y = top + 14.0 * i
        out.append(el("Alpha", 50, y, page=page))
        out.append(el("100", 200, y, page=page))
    return out


@pytest.fixture
def make_element():
    return el


@pytest.fixture
def simple_page():
    return simple_rows(3)


@pytest.fixture
def statement_page():
    """Bank statement rows; the first description wraps onto a second line."""
    return [
        el("01/15/2024", 50, 100), el("Grocery Store", 150, 100), el("-45.67", 300, 100),
        el("and monthly fee", 150, 114),
        el("01/16/2024", 50, 128), el("Coffee Shop", 150, 128), el("-3.20", 300, 128),
        el("01/17/2024", 50, 142), el("Gas Station", 150, 142), el("-20.00", 300, 142),
    ]


@pytest.fixture
def header_page():
    """Bold header whose first label spans the date and description columns."""
    return [
        el("Transaction Details", 50, 80, width=160, bold=True), el("Amount", 300, 80, bold=True),
        el("01/15/2024", 50, 100), el("Grocery Store", 150, 100), el("-45.67", 300, 100),
        el("01/16/2024", 50, 114), el("Coffee Shop", 150, 114), el("-3.20", 300, 114),
        el("01/17/2024", 50, 128), el("Gas Station", 150, 128), el("-20.00", 300, 128),
        el("01/18/2024", 50, 142), el("Book Store", 150, 142), el("-12.50", 300, 142),
    ]


@pytest.fixture
def grid_page():
    """A ruled 3x2 table: columns at x=40/140/240, rows at y=90/110/130/150."""
    elements = [
        el("Name", 50, 95), el("Value", 150, 95),
        el("Alpha", 50, 115), el("1", 150, 115),
        el("Beta", 50, 135), el("2", 150, 135),
    ]
    graphics = [GraphicsElement.line(40, y, 240, y) for y in (90, 110, 130, 150)]
    graphics += [GraphicsElement.line(x, 90, x, 150) for x in (40, 140, 240)]
    return elements, graphics


@pytest.fixture
def make_rows():
    return simple_rows


@pytest.fixture
def wrapped_two_column_page():
    """Two statement rows; the first description wraps onto a line with no amount."""
    return [
        el("Grocery Store", 50, 100), el("-45.67", 300, 100),
        el("and monthly fee", 50, 114),
        el("Coffee Shop", 50, 128), el("-3.20", 300, 128),
    ]
