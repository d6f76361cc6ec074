# capital_checker/pdf_pipeline.py
from __future__ import annotations

from dataclasses import asdict
from pathlib import Path
from typing import List, Optional, Tuple
import hashlib
import io
import logging
import re

import pandas as pd

from capital_checker.lines import assemble_pages
from capital_checker.models import ExtractionError, PageSize, ParseResult, TextItem

logger = logging.getLogger(__name__)

HAVE_PYMUPDF = False
HAVE_PYPDF = False

try:
    import fitz
    HAVE_PYMUPDF = True
except ImportError:
    pass

try:
    from pypdf import PdfReader
    HAVE_PYPDF = True
except ImportError:
    pass


def _safe_name(stem: str, maxlen: int = 60) -> str:
    """Filesystem-safe, short name with a hash suffix to avoid collisions."""
    base = re.sub(r"[^A-Za-z0-9._-]+", "_", stem).strip("_")
    if len(base) <= maxlen:
        return base
    h = hashlib.md5(stem.encode("utf-8")).hexdigest()[:8]
    return f"{base[:maxlen-9]}_{h}"


def _items_pymupdf(data: bytes) -> Tuple[List[List[TextItem]], List[PageSize]]:
    doc = fitz.open(stream=data, filetype="pdf")
    try:
        pages: List[List[TextItem]] = []
        sizes: List[PageSize] = []
        for page in doc:
            height = float(page.rect.height)
            items: List[TextItem] = []
            for block in page.get_text("dict").get("blocks", []):
                if block.get("type") != 0:  # 0 = text, 1 = image
                    continue
                for line in block.get("lines", []):
                    for span in line.get("spans", []):
                        x0, y0 = span["origin"]
                        # fitz measures y from the top; flip to the PDF origin
                        items.append(TextItem(x=float(x0), y=height - float(y0), text=span["text"]))
            pages.append(items)
            sizes.append(PageSize(width=float(page.rect.width), height=height))
        return pages, sizes
    finally:
        doc.close()


def _items_pypdf(data: bytes) -> Tuple[List[List[TextItem]], List[PageSize]]:
    reader = PdfReader(io.BytesIO(data))
    pages: List[List[TextItem]] = []
    sizes: List[PageSize] = []
    for page in reader.pages:
        items: List[TextItem] = []

        def visitor(text, cm, tm, font_dict, font_size, _items=items):
            text = text.replace("\n", " ")
            if not text.strip():
                return
            # text-space origin mapped through the current transformation matrix
            x = tm[4] * cm[0] + tm[5] * cm[2] + cm[4]
            y = tm[4] * cm[1] + tm[5] * cm[3] + cm[5]
            _items.append(TextItem(x=float(x), y=float(y), text=text))

        page.extract_text(visitor_text=visitor)
        pages.append(items)
        sizes.append(PageSize(width=float(page.mediabox.width), height=float(page.mediabox.height)))
    return pages, sizes


def extract_document(data: bytes, file_name: str) -> ParseResult:
    """
    Positioned text for every page of one PDF, plus the assembled lines.
    Raises ExtractionError when no backend can read the document.
    """
    backends = []
    if HAVE_PYMUPDF:
        backends.append(("pymupdf", _items_pymupdf))
    if HAVE_PYPDF:
        backends.append(("pypdf", _items_pypdf))

    errors: List[str] = []
    for backend, read in backends:
        try:
            items, sizes = read(data)
            if not items:
                raise ExtractionError("document has no pages")
        except Exception as e:
            errors.append(f"{backend}: {type(e).__name__}: {e}")
            continue
        logger.debug("%s: %d page(s) via %s, %d item(s)",
                     file_name, len(items), backend, sum(len(p) for p in items))
        return ParseResult(file_name=file_name, pages=assemble_pages(items), page_sizes=sizes, items=items)

    detail = " | ".join(errors) if errors else "no PDF backend installed"
    raise ExtractionError(f"{file_name}: all backends failed. Details: {detail}")


def extract_pdf(pdf_path: Path) -> ParseResult:
    pdf_path = Path(pdf_path)
    try:
        data = pdf_path.read_bytes()
    except OSError as e:
        raise ExtractionError(f"{pdf_path.name}: {e}") from e
    return extract_document(data, pdf_path.name)


def dump_debug_pages(result: ParseResult, dump_root: Path) -> Path:
    """
    Write <dump_root>/debug_pages/<safe_stem>_pNN.txt (one line per text line)
    and, when items are known, <safe_stem>_pNN.items.csv next to it.
    """
    dbg_pages = Path(dump_root) / "debug_pages"
    dbg_pages.mkdir(parents=True, exist_ok=True)
    safe = _safe_name(Path(result.file_name).stem)
    for i, lines in enumerate(result.pages, start=1):
        (dbg_pages / f"{safe}_p{i:02d}.txt").write_text("\n".join(lines), encoding="utf-8")
        if result.items and i <= len(result.items):
            df = pd.DataFrame([asdict(it) for it in result.items[i - 1]], columns=["x", "y", "text"])
            df.to_csv(dbg_pages / f"{safe}_p{i:02d}.items.csv", index=False, encoding="utf-8")
    return dbg_pages


def read_debug_pages(pdf_path: Path, debug_root: Optional[Path] = None) -> Optional[ParseResult]:
    """
    Try shared <debug_root>/debug_pages first, then <pdf_dir>/debug_pages.
    Filenames must be <safe_stem>_pNN.txt. Returns None when nothing was dumped.
    """
    pdf_path = Path(pdf_path)
    candidates: List[Path] = []
    if debug_root is not None:
        shared = Path(debug_root) / "debug_pages"
        if shared.exists():
            candidates.append(shared)
    sibling = pdf_path.parent / "debug_pages"
    if sibling.exists():
        candidates.append(sibling)

    stem = _safe_name(pdf_path.stem)
    rx = re.compile(rf"^{re.escape(stem)}_p(\d+)\.txt$", re.I)

    for folder in candidates:
        hits = []
        for p in folder.iterdir():
            m = rx.match(p.name)
            if m:
                hits.append((int(m.group(1)), p))
        if not hits:
            continue
        hits.sort(key=lambda t: t[0])

        pages: List[List[str]] = []
        items: List[List[TextItem]] = []
        have_items = True
        for _, fp in hits:
            text = fp.read_text(encoding="utf-8")
            pages.append(text.split("\n") if text else [])
            items_csv = fp.with_name(fp.stem + ".items.csv")
            if have_items and items_csv.exists():
                df = pd.read_csv(items_csv, dtype={"text": str}, keep_default_na=False)
                items.append([TextItem(x=float(r.x), y=float(r.y), text=str(r.text))
                              for r in df.itertuples(index=False)])
            else:
                have_items = False

        logger.debug("%s: %d debug page(s) from %s", pdf_path.name, len(pages), folder)
        return ParseResult(file_name=pdf_path.name, pages=pages, items=items if have_items else None)

    return None
