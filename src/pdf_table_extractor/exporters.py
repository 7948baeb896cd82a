# src/pdf_table_extractor/exporters.py
from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, List, Sequence
import csv
import json

from .table import Table


def _ensure_parent_dir(path: str) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)


def rows_to_csv(rows: List[List[str]], csv_path: str) -> None:
    _ensure_parent_dir(csv_path)
    with open(csv_path, "w", encoding="utf-8-sig", newline="") as f:
        w = csv.writer(f)
        w.writerows(rows)


def tables_to_csv(tables: Sequence[Table], csv_path: str) -> None:
    """
    Escribe las tablas en un único CSV. Con más de una tabla, cada una va
    precedida de una fila `# Table i (Page p)` y separada por una fila vacía.
    """
    rows: List[List[str]] = []
    many = len(tables) > 1
    for i, table in enumerate(tables, start=1):
        if many:
            if i > 1:
                rows.append([])
            rows.append([f"# Table {i} (Page {table.page_num + 1})"])
        rows.extend(table.to_string_grid())
    rows_to_csv(rows, csv_path)


def table_to_dict(table: Table, index: int = 0) -> Dict[str, Any]:
    cells = []
    for row in table.rows:
        for cell in row:
            if cell.is_empty():
                continue
            item: Dict[str, Any] = dict(row=cell.row, column=cell.column, text=cell.text,
                                        align=cell.text_align.value)
            if cell.is_merged():
                item.update(row_span=cell.row_span, col_span=cell.col_span)
            cells.append(item)
    bounds = table.bounds
    return {
        "index": index,
        "page": table.page_num,
        "method": table.method,
        "rows": table.row_count,
        "columns": table.col_count,
        "header_rows": table.header_rows,
        "bounds": dict(x=bounds.x, y=bounds.y, width=bounds.width, height=bounds.height) if bounds else None,
        "data": table.to_string_grid(),
        "cells": cells,
    }


def tables_to_json(tables: Sequence[Table], json_path: str) -> None:
    _ensure_parent_dir(json_path)
    payload = {"tables": [table_to_dict(t, i) for i, t in enumerate(tables)]}
    with open(json_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)


def render_table_text(table: Table, index: int) -> str:
    """Tabla en texto plano: cabecera `=== Table i (Page p, r rows x c columns) ===`
    y columnas rellenadas a la anchura de su celda más larga, separadas por ` | `.
    Los saltos de línea dentro de una celda se aplanan a espacios.
    """
    grid = [[" ".join(cell.split("\n")) for cell in row] for row in table.to_string_grid()]
    widths = [max((len(row[c]) for row in grid), default=0) for c in range(table.col_count)]
    out = [f"=== Table {index} (Page {table.page_num + 1}, "
           f"{table.row_count} rows x {table.col_count} columns) ==="]
    for row in grid:
        out.append(" | ".join(cell.ljust(widths[c]) for c, cell in enumerate(row)))
    return "\n".join(out)


def tables_to_text(tables: Sequence[Table], txt_path: str) -> None:
    _ensure_parent_dir(txt_path)
    blocks = [render_table_text(t, i) for i, t in enumerate(tables, start=1)]
    with open(txt_path, "w", encoding="utf-8") as f:
        f.write("\n\n".join(blocks))
        if blocks:
            f.write("\n")
