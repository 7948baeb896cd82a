from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from .evaluation import TableEvaluation, evaluate_table, evaluate_tables, write_report
from .main import extract_tables_from_pages
from .options import DetectionOptions
from .parser import load_pages

log = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Evalúa una tabla extraída contra un CSV de referencia (text accuracy, MSE, RMSE, R2)."
    )
    parser.add_argument("--reference", required=True, help="CSV de referencia (ground truth), sin fila de cabecera aparte.")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--predicted", help="CSV ya generado a evaluar.")
    source.add_argument("--input", help="Volcado de elementos (JSON o XHTML de pdftotext -bbox) del que extraer la tabla.")
    parser.add_argument("--table-index", type=int, default=0, help="Índice de la tabla extraída a evaluar con --input (default: 0).")
    parser.add_argument("--method", default="auto", choices=["auto", "lattice", "stream"])
    parser.add_argument("--numeric-columns", nargs="+", help="Columnas numéricas a evaluar (col_0, col_1, ...). Si se omite, se infieren.")
    parser.add_argument("--report", help="Ruta opcional para guardar un reporte CSV con las métricas.")
    parser.add_argument("--json", help="Ruta opcional para guardar métricas en JSON.")
    parser.add_argument("--loglevel", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args()


def _evaluate_input(args: argparse.Namespace) -> TableEvaluation:
    pages = load_pages(args.input)
    result = extract_tables_from_pages(pages, DetectionOptions(method=args.method))
    if not 0 <= args.table_index < len(result.tables):
        raise ValueError(f"--table-index {args.table_index} fuera de rango: se extrajeron {len(result.tables)} tabla(s)")
    return evaluate_table(args.reference, result.tables[args.table_index], numeric_columns=args.numeric_columns)


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=args.loglevel, format="%(asctime)s - %(levelname)s - %(message)s")

    if args.input:
        evaluation = _evaluate_input(args)
    else:
        evaluation = evaluate_tables(
            reference_csv=args.reference,
            predicted_csv=args.predicted,
            numeric_columns=args.numeric_columns,
        )

    log.info("Text accuracy: %.4f (%d/%d), misma forma: %s", evaluation.text_accuracy,
             evaluation.matched_cells, evaluation.total_cells, evaluation.shape_match)
    for metric in evaluation.numeric_by_column:
        log.info("Numeric column %s -> MSE: %.6f RMSE: %.6f R2: %.6f (n=%d)", metric.column, metric.mse, metric.rmse, metric.r2, metric.n)
    if evaluation.numeric_overall:
        overall = evaluation.numeric_overall
        log.info("Numeric overall -> MSE: %.6f RMSE: %.6f R2: %.6f (n=%d)", overall.mse, overall.rmse, overall.r2, overall.n)

    if args.report:
        write_report(evaluation, args.report)
        log.info("Reporte CSV guardado en %s", args.report)

    if args.json:
        Path(args.json).parent.mkdir(parents=True, exist_ok=True)
        with open(args.json, "w", encoding="utf-8") as fh:
            json.dump(evaluation.to_dict(), fh, indent=2)
        log.info("Reporte JSON guardado en %s", args.json)


if __name__ == "__main__":
    main()
