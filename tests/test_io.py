"""Tests for the edges: element loaders, CSV/JSON writers and CSV evaluation."""

# pylint: disable=missing-class-docstring,missing-function-docstring

import csv
import json
import math

import pytest

from pdf_table_extractor.evaluation import evaluate_table, evaluate_tables, write_report
from pdf_table_extractor.exporters import tables_to_csv, tables_to_json, tables_to_text
from pdf_table_extractor.main import extract_page_tables, extract_tables_from_pages
from pdf_table_extractor.parser import load_pages, parse_json_pages
from pdf_table_extractor.structures import GraphicsKind

BBOX_XHTML = """<html xmlns="http://www.w3.org/1999/xhtml">
<head><title></title></head>
<body>
<doc>
  <page width="612.000000" height="792.000000">
    <word xMin="50.000000" yMin="100.000000" xMax="75.000000" yMax="110.000000">Alpha</word>
    <word xMin="200.000000" yMin="100.000000" xMax="215.000000" yMax="110.000000">100</word>
    <word xMin="50.000000" yMin="114.000000" xMax="75.000000" yMax="124.000000">Alpha</word>
    <word xMin="200.000000" yMin="114.000000" xMax="215.000000" yMax="124.000000">100</word>
    <word xMin="50.000000" yMin="128.000000" xMax="75.000000" yMax="138.000000">Alpha</word>
    <word xMin="200.000000" yMin="128.000000" xMax="215.000000" yMax="138.000000">100</word>
  </page>
  <page width="612.000000" height="792.000000">
    <word xMin="50.000000" yMin="100.000000" xMax="90.000000" yMax="110.000000">Footer</word>
  </page>
</doc>
</body>
</html>
"""


def read_csv_rows(path):
    with open(path, encoding="utf-8-sig", newline="") as fh:
        return list(csv.reader(fh))


# ===========================================================================
# Loaders
# ===========================================================================


class TestLoaders:

    def test_pdftotext_bbox(self, tmp_path):
        path = tmp_path / "statement.html"
        path.write_text(BBOX_XHTML, encoding="utf-8")
        pages = load_pages(str(path))
        assert [p.page_index for p in pages] == [0, 1]
        assert len(pages[0].elements) == 6
        first = pages[0].elements[0]
        assert first.text == "Alpha"
        assert (first.x, first.top, first.right, first.bottom) == (50.0, 100.0, 75.0, 110.0)
        assert pages[1].elements[0].page_index == 1

    def test_pdftotext_pages_extract(self, tmp_path):
        path = tmp_path / "statement.html"
        path.write_text(BBOX_XHTML, encoding="utf-8")
        result = extract_tables_from_pages(load_pages(str(path)))
        assert len(result.tables) == 1
        assert result.tables[0].to_string_grid() == [["Alpha", "100"]] * 3

    def test_json_dump(self, tmp_path):
        data = {"pages": [{
            "page_index": 0,
            "elements": [
                {"text": "Total", "x": 10, "y": 20, "width": 30, "height": 10, "font_size": 9, "bold": True},
                {"text": "missing x", "y": 20, "width": 30, "height": 10},
            ],
            "graphics": [
                {"type": "line", "x1": 0, "y1": 0, "x2": 100, "y2": 0},
                {"type": "rectangle", "x": 0, "y": 0, "width": 100, "height": 50},
                {"type": "curve"},
            ],
        }]}
        path = tmp_path / "page.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        page = load_pages(str(path))[0]
        assert len(page.elements) == 1
        assert page.elements[0].bold
        assert page.elements[0].font_size == 9.0
        assert [g.kind for g in page.graphics] == [GraphicsKind.LINE, GraphicsKind.RECTANGLE]

    def test_json_page_list(self):
        pages = parse_json_pages([{"elements": []}, {"elements": []}])
        assert [p.page_index for p in pages] == [0, 1]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_pages(str(tmp_path / "nope.json"))


# ===========================================================================
# Writers
# ===========================================================================


class TestWriters:

    def test_single_table_csv(self, tmp_path, statement_page):
        out = tmp_path / "out" / "table.csv"
        tables_to_csv(extract_page_tables(statement_page), str(out))
        rows = read_csv_rows(out)
        assert rows[0] == ["01/15/2024", "Grocery Store\nand monthly fee", "-45.67"]
        assert len(rows) == 3

    def test_multiple_tables_csv(self, tmp_path, simple_page, statement_page):
        tables = extract_page_tables(simple_page) + extract_page_tables(statement_page)
        out = tmp_path / "tables.csv"
        tables_to_csv(tables, str(out))
        rows = read_csv_rows(out)
        assert rows[0] == ["# Table 1 (Page 1)"]
        assert ["# Table 2 (Page 1)"] in rows
        assert [] in rows

    def test_json(self, tmp_path, header_page):
        out = tmp_path / "tables.json"
        tables_to_json(extract_page_tables(header_page), str(out))
        payload = json.loads(out.read_text(encoding="utf-8"))
        table = payload["tables"][0]
        assert table["method"] == "Stream"
        assert table["header_rows"] == 1
        assert table["columns"] == 3
        assert table["data"][0] == ["Transaction Details", "", "Amount"]
        spanning = [c for c in table["cells"] if c.get("col_span") == 2]
        assert spanning[0]["text"] == "Transaction Details"

    def test_text(self, tmp_path, statement_page, simple_page):
        out = tmp_path / "tables.txt"
        tables_to_text(extract_page_tables(statement_page) + extract_page_tables(simple_page), str(out))
        lines = out.read_text(encoding="utf-8").splitlines()
        assert lines[0] == "=== Table 1 (Page 1, 3 rows x 3 columns) ==="
        assert lines[1] == "01/15/2024 | Grocery Store and monthly fee | -45.67"
        assert lines[2] == "01/16/2024 | Coffee Shop                   | -3.20 "
        assert lines[4] == ""
        assert lines[5] == "=== Table 2 (Page 1, 3 rows x 2 columns) ==="
        assert lines[6] == "Alpha | 100"


# ===========================================================================
# Evaluation
# ===========================================================================


class TestEvaluation:

    def test_perfect_match(self, tmp_path, simple_page):
        ref = tmp_path / "ref.csv"
        ref.write_text("Alpha,100\nAlpha,100\nAlpha,100\n", encoding="utf-8")
        evaluation = evaluate_table(str(ref), extract_page_tables(simple_page)[0])
        assert evaluation.text_accuracy == 1.0
        assert evaluation.shape_match
        assert evaluation.numeric_by_column[0].column == "col_1"
        assert evaluation.numeric_by_column[0].mse == 0.0

    def test_partial_match(self, tmp_path, simple_page):
        ref = tmp_path / "ref.csv"
        ref.write_text("Alpha,100\nAlpha,100\nBeta,110\n", encoding="utf-8")
        evaluation = evaluate_table(str(ref), extract_page_tables(simple_page)[0])
        assert evaluation.matched_cells == 4
        assert evaluation.total_cells == 6
        assert math.isclose(evaluation.numeric_overall.mse, 100.0 / 3)

    def test_multiline_cells_and_amounts(self, tmp_path, statement_page):
        pred = tmp_path / "pred.csv"
        tables_to_csv(extract_page_tables(statement_page), str(pred))
        ref = tmp_path / "ref.csv"
        ref.write_text('01/15/2024,Grocery Store and monthly fee,-45.67\n'
                       '01/16/2024,Coffee Shop,-3.20\n'
                       '01/17/2024,Gas Station,"-20.00"\n', encoding="utf-8")
        evaluation = evaluate_tables(str(ref), str(pred))
        assert evaluation.text_accuracy == 1.0

    def test_shape_mismatch_padded(self, tmp_path, simple_page):
        ref = tmp_path / "ref.csv"
        ref.write_text("Alpha,100,x\nAlpha,100,y\n", encoding="utf-8")
        evaluation = evaluate_table(str(ref), extract_page_tables(simple_page)[0])
        assert not evaluation.shape_match
        assert evaluation.total_cells == 9

    def test_report(self, tmp_path, simple_page):
        ref = tmp_path / "ref.csv"
        ref.write_text("Alpha,100\nAlpha,100\nAlpha,100\n", encoding="utf-8")
        report = tmp_path / "report" / "metrics.csv"
        write_report(evaluate_table(str(ref), extract_page_tables(simple_page)[0]), str(report))
        rows = read_csv_rows(report)
        assert rows[0] == ["Metric", "Column", "Value", "N"]
        assert rows[1][:3] == ["text_accuracy", "-", "1.0000"]
