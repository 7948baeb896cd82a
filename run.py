# run.py
from __future__ import annotations
import sys
from pathlib import Path
import logging
import argparse

sys.path.append(str(Path(__file__).parent / "src"))
from importlib import import_module
extractor_main = import_module("pdf_table_extractor.main")
parser_mod = import_module("pdf_table_extractor.parser")
exporters = import_module("pdf_table_extractor.exporters")
options_mod = import_module("pdf_table_extractor.options")

log = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(description="Detectar y extraer tablas de elementos de texto de PDF a CSV, JSON o texto.")
    parser.add_argument("input_path", type=str, help="Volcado de elementos: .json o XHTML de `pdftotext -bbox`")
    parser.add_argument("output_path", type=str, help="Ruta del archivo de salida")
    parser.add_argument("--format", type=str, default="csv", choices=["csv", "json", "text"],
                        help="Formato de salida (default: csv)")
    parser.add_argument("--method", type=str, default="auto", choices=["auto", "lattice", "stream"],
                        help="Método de detección (default: auto)")
    parser.add_argument("--page", type=int, help="Procesar sólo esta página (1-based)")
    parser.add_argument("--gap-factor", type=float, help="Múltiplo del gap entre palabras que separa columnas (default: 3.0)")
    parser.add_argument("--min-repeat-lines", type=int, help="Líneas consecutivas para confirmar una tabla (default: 3)")
    parser.add_argument("--amount-pattern", type=str, help="Regex de importes para la columna ancla")
    parser.add_argument("--date-pattern", type=str, help="Regex de fechas para la columna ancla")
    parser.add_argument("--workers", type=int, help="Hilos para procesar páginas en paralelo")
    parser.add_argument("--loglevel", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Nivel de verbosidad del log (default: INFO)")

    args = parser.parse_args()
    logging.basicConfig(level=args.loglevel, format='%(asctime)s - %(levelname)s - %(message)s')

    try:
        options = options_mod.DetectionOptions.from_mapping(vars(args))
    except ValueError as e:
        parser.error(str(e))
    if args.workers is not None and args.workers < 1:
        parser.error("--workers debe ser >= 1")

    log.info("ENTRADA: %s", args.input_path)
    log.info("SALIDA : %s (%s)", args.output_path, args.format)

    try:
        pages = parser_mod.load_pages(args.input_path)
        if args.page is not None:
            pages = [p for p in pages if p.page_index == args.page - 1]
            if not pages:
                log.warning("La página %d no existe en %s.", args.page, args.input_path)

        result = extractor_main.extract_tables_from_pages(pages, options, max_workers=args.workers)
        if not result.tables:
            log.warning("No se detectaron tablas.")

        if args.format == "json":
            exporters.tables_to_json(result.tables, args.output_path)
        elif args.format == "text":
            exporters.tables_to_text(result.tables, args.output_path)
        else:
            exporters.tables_to_csv(result.tables, args.output_path)
        log.info("✔ %d tabla(s) exportada(s).", len(result.tables))
    except FileNotFoundError:
        log.error("Error: No se encontró el archivo de entrada: %s", args.input_path)
    except Exception as e:
        log.error("Ocurrió un error inesperado: %s", e, exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
