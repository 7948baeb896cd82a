"""End-to-end tests: region detection, grid building and page orchestration."""

# pylint: disable=missing-class-docstring,missing-function-docstring

import threading

import pytest

from pdf_table_extractor import main as extractor
from pdf_table_extractor.grid_builder import build_table
from pdf_table_extractor.main import (
    PageInput,
    detect_tables,
    extract_page_tables,
    extract_table,
    extract_tables_from_pages,
)
from pdf_table_extractor.options import DetectionMethod, DetectionOptions
from pdf_table_extractor.spatial import RegionMethod, TableRegion
from pdf_table_extractor.structures import Rectangle, TextElement
from pdf_table_extractor.table import TableValidationError, TextAlign

STREAM = DetectionOptions(method=DetectionMethod.STREAM)
LATTICE = DetectionOptions(method=DetectionMethod.LATTICE)


# ===========================================================================
# detect_tables
# ===========================================================================


class TestDetectTables:

    def test_empty_page(self):
        assert detect_tables([]) == []
        assert extract_page_tables([]) == []

    def test_minimum_repetition(self, make_rows):
        assert detect_tables(make_rows(2)) == []
        regions = detect_tables(make_rows(3))
        assert len(regions) == 1
        assert regions[0].col_count == 2

    def test_idempotent(self, statement_page):
        assert detect_tables(statement_page) == detect_tables(statement_page)

    def test_auto_prefers_lattice(self, grid_page):
        elements, graphics = grid_page
        regions = detect_tables(elements, graphics)
        assert [r.method for r in regions] == [RegionMethod.LATTICE]

    def test_auto_falls_back_to_stream(self, grid_page):
        elements, _ = grid_page
        regions = detect_tables(elements, [])
        assert [r.method for r in regions] == [RegionMethod.STREAM]

    def test_two_wrapped_rows_below_minimum(self, wrapped_two_column_page):
        """Only two of the three lines show the column gap. The wrapped line is
        absorbed as a continuation but does not count toward `min_repeat_lines`,
        so with the default of three no table starts.
        """
        assert detect_tables(wrapped_two_column_page) == []
        tables = extract_page_tables(wrapped_two_column_page, options=DetectionOptions(min_repeat_lines=2))
        assert [t.to_string_grid() for t in tables] == [
            [["Grocery Store\nand monthly fee", "-45.67"], ["Coffee Shop", "-3.20"]]]

    def test_lattice_only_mode(self, statement_page):
        assert detect_tables(statement_page, options=LATTICE) == []

    def test_stream_runs_outside_lattice_region(self, grid_page, statement_page):
        elements, graphics = grid_page
        below = [TextElement(e.text, Rectangle(e.x, e.top + 200, e.width, e.height)) for e in statement_page]
        regions = detect_tables(elements + below, graphics)
        assert [r.method for r in regions] == [RegionMethod.LATTICE, RegionMethod.STREAM]
        assert regions[0].bounds.y < regions[1].bounds.y

    def test_regions_ordered_top_to_bottom(self, make_rows):
        regions = detect_tables(make_rows(3, top=300) + make_rows(3, top=100))
        assert [r.bounds.y for r in regions] == [100, 300]


# ===========================================================================
# Table extraction
# ===========================================================================


class TestExtractTable:

    def test_simple_grid(self, simple_page):
        tables = extract_page_tables(simple_page)
        assert len(tables) == 1
        assert tables[0].to_string_grid() == [["Alpha", "100"]] * 3
        assert tables[0].method == "Stream"

    def test_multiline_merge(self, statement_page):
        table = extract_page_tables(statement_page)[0]
        assert table.row_count == 3
        assert table.get_cell(0, 1).text == "Grocery Store\nand monthly fee"
        assert table.get_cell(0, 2).text == "-45.67"
        assert table.get_cell(1, 1).text == "Coffee Shop"
        assert table.get_cell(1, 2).text == "-3.20"

    def test_explicit_region_merges_wrapped_line(self, wrapped_two_column_page):
        region = TableRegion(Rectangle(50, 100, 280, 38), (100, 126, 138), (50, 200, 330),
                             RegionMethod.STREAM, anchor_column=1)
        table = extract_table(region, wrapped_two_column_page)
        assert table.to_string_grid() == [["Grocery Store\nand monthly fee", "-45.67"], ["Coffee Shop", "-3.20"]]
        assert table.get_cell(0, 1).text_align is TextAlign.RIGHT

    def test_amount_column_right_aligned(self, statement_page):
        table = extract_page_tables(statement_page)[0]
        assert all(c.text_align is TextAlign.RIGHT for c in table.get_column(2))
        assert all(c.text_align is TextAlign.LEFT for c in table.get_column(0))

    def test_spanning_bold_header(self, header_page):
        table = extract_page_tables(header_page)[0]
        assert table.header_rows == 1
        header = table.get_row(0)
        assert header[0].text == "Transaction Details"
        assert header[0].col_span == 2
        assert header[1].text == ""
        assert header[1].col_span == 1
        assert header[2].text == "Amount"
        assert table.get_cell(1, 2).text == "-45.67"
        assert table.has_merged_cells()

    def test_spanning_header_over_three_rows(self, header_page):
        table = extract_page_tables(header_page[:-3])[0]
        assert table.row_count == 4
        assert table.col_count == 3
        assert table.get_cell(0, 0).col_span == 2
        assert table.get_cell(0, 2).text == "Amount"

    def test_centered_header_column(self, make_element):
        region = TableRegion(Rectangle(0, 0, 200, 60), (0, 20, 40, 60), (0, 100, 200),
                             RegionMethod.STREAM, header_rows=1)
        elements = [
            make_element("Qty", 42.5, 5), make_element("Item", 105, 5),
            make_element("3", 47.5, 25), make_element("Apple", 105, 25),
            make_element("5", 47.5, 45), make_element("Pear", 105, 45),
        ]
        table = extract_table(region, elements)
        assert table.get_cell(1, 0).text_align is TextAlign.CENTER
        assert table.get_cell(1, 1).text_align is TextAlign.LEFT

    def test_every_table_validates(self, statement_page, header_page, grid_page):
        elements, graphics = grid_page
        tables = (extract_page_tables(statement_page) + extract_page_tables(header_page)
                  + extract_page_tables(elements, graphics))
        assert len(tables) == 3
        for table in tables:
            table.validate()

    def test_lattice_and_stream_agree(self, grid_page):
        elements, graphics = grid_page
        lattice = extract_page_tables(elements, graphics, LATTICE)[0]
        stream = extract_page_tables(elements, [], STREAM)[0]
        assert lattice.method == "Lattice"
        assert stream.method == "Stream"
        assert lattice.to_string_grid() == stream.to_string_grid()

    def test_invalid_table_dropped(self, simple_page, monkeypatch):
        def broken(*args, **kwargs):
            raise TableValidationError("bad grid")

        monkeypatch.setattr(extractor, "build_table", broken)
        assert extract_page_tables(simple_page) == []

    def test_cell_bounds_follow_boundaries(self, simple_page):
        region = detect_tables(simple_page)[0]
        table = build_table(region, simple_page)
        assert table.get_cell(0, 1).bounds == region.cell_bounds(0, 1)


# ===========================================================================
# Multi-page orchestration
# ===========================================================================


class TestPages:

    @pytest.fixture
    def pages(self, make_rows):
        return [PageInput(page_index=i, elements=make_rows(3, page=i)) for i in (2, 0, 1)]

    def test_tables_ordered_by_page(self, pages):
        result = extract_tables_from_pages(pages, max_workers=3)
        assert not result.cancelled
        assert result.pages_processed == 3
        assert [t.page_num for t in result.tables] == [0, 1, 2]

    def test_cancelled_before_start(self, pages):
        event = threading.Event()
        event.set()
        result = extract_tables_from_pages(pages, cancel_event=event)
        assert result.cancelled
        assert result.tables == []
        assert result.pages_processed == 0

    def test_no_pages(self):
        result = extract_tables_from_pages([])
        assert result.tables == []
        assert not result.cancelled

    @pytest.mark.parametrize("workers", [1, 4])
    def test_same_result_regardless_of_workers(self, pages, workers):
        result = extract_tables_from_pages(pages, max_workers=workers)
        assert [t.to_string_grid() for t in result.tables] == [[["Alpha", "100"]] * 3] * 3
