#!/usr/bin/env python3
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from capital_checker.area_tables import build_area_workbook
from capital_checker.batch import ExtractionSession, jobs_from_paths
from capital_checker.export import (
    write_area_workbook,
    write_issues_xlsx,
    write_records_csv,
    write_records_xlsx,
)
from capital_checker.pdf_pipeline import dump_debug_pages
from capital_checker.rules import EXTRACTION_TIMEOUT_S, MAX_WORKERS


def discover_pdfs(root: Path) -> List[Path]:
    """All PDFs under root (or root itself when it is a PDF), skipping ~$ temp files."""
    root = Path(root)
    if root.is_file():
        return [root] if root.suffix.lower() == ".pdf" else []
    if not root.exists():
        raise FileNotFoundError(root)
    pdfs = [
        p for p in root.rglob("*")
        if p.is_file() and p.suffix.lower() == ".pdf" and not p.name.startswith("~$")
    ]
    return sorted(pdfs, key=lambda p: (p.name.lower(), str(p)))


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(prog="capital-checker")
    ap.add_argument("--input", required=True, help="PDF file or folder to scan for capital account statements")
    ap.add_argument("--out", required=True, help="Output prefix (no extension)")
    ap.add_argument("--timeout", type=float, default=EXTRACTION_TIMEOUT_S, help="Per-document extraction timeout in seconds (default 30)")
    ap.add_argument("--workers", type=int, default=MAX_WORKERS, help="Documents extracted in parallel")
    ap.add_argument("--no-area-workbook", dest="area_workbook", action="store_false", help="Skip the balance/contribution check workbook")
    ap.add_argument("--use-debug-pages", action="store_true", help="Read lines/items from debug_pages/ dumps instead of re-extracting")
    ap.add_argument("--keep-debug", action="store_true", help="Write debug_pages/ dumps (lines + items) next to the output")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return ap.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )

    pdfs = discover_pdfs(Path(args.input))
    print(f"[INFO] PDFs found: {len(pdfs)}")

    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    dbg_root = out.parent

    session = ExtractionSession(timeout=args.timeout, max_workers=args.workers)
    batch = session.run_batch(jobs_from_paths(pdfs, debug_root=dbg_root, use_debug_pages=args.use_debug_pages))
    state = session.state

    if args.keep_debug:
        for res in state.results:
            dump_debug_pages(res, dbg_root)

    write_records_xlsx(state.records, out.with_suffix(".records.xlsx"), issues=state.issues)
    write_records_csv(state.records, out.with_suffix(".records.csv"))
    write_issues_xlsx(state.issues, out.with_suffix(".issues.xlsx"))
    if args.area_workbook:
        write_area_workbook(build_area_workbook(state.results), out.with_suffix(".area_checks.xlsx"))

    errors = sum(1 for i in state.issues if i.type == "error")
    warnings = len(state.issues) - errors
    print(f"[INFO] Records: {len(state.records)}  errors: {errors}  warnings: {warnings}")
    for f in batch.failures:
        print(f"[WARN] {f.file_name}: {f.message}")

    print("Done.")
    return 1 if pdfs and not batch.results else 0


if __name__ == "__main__":
    raise SystemExit(main())
