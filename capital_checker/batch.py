# capital_checker/batch.py
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple
import logging
import threading

from capital_checker.models import BatchResult, DocumentFailure, ParseResult
from capital_checker.parse import parse_pages_to_records
from capital_checker.pdf_pipeline import extract_document, extract_pdf, read_debug_pages
from capital_checker.rules import EXTRACTION_TIMEOUT_S, MAX_WORKERS
from capital_checker.state import AppState
from capital_checker.validate import validate_records

logger = logging.getLogger(__name__)

Job = Tuple[str, Callable[[], ParseResult]]


def jobs_from_bytes(documents: Sequence[Tuple[str, bytes]]) -> List[Job]:
    return [(name, lambda d=data, n=name: extract_document(d, n)) for name, data in documents]


def jobs_from_paths(pdfs: Sequence[Path], debug_root: Optional[Path] = None,
                    use_debug_pages: bool = False) -> List[Job]:
    def _load(pdf: Path) -> ParseResult:
        if use_debug_pages:
            cached = read_debug_pages(pdf, debug_root=debug_root)
            if cached is not None:
                return cached
        return extract_pdf(pdf)

    return [(Path(p).name, lambda p=p: _load(Path(p))) for p in pdfs]


class ExtractionSession:
    """
    Runs extraction batches and commits them into an AppState.

    Every batch takes a new generation number; a batch only commits while its
    generation is still the latest, so a superseded batch finishes quietly
    without touching the state.
    """

    def __init__(self, state: Optional[AppState] = None, timeout: float = EXTRACTION_TIMEOUT_S,
                 max_workers: int = MAX_WORKERS):
        self.state = state if state is not None else AppState()
        self.timeout = timeout
        self.max_workers = max_workers
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def generation(self) -> int:
        return self._generation

    def begin(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def cancel(self) -> None:
        """Abandon whatever batch is in flight."""
        self.begin()

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def run_batch(self, jobs: Sequence[Job]) -> BatchResult:
        gen = self.begin()
        out = BatchResult(generation=gen)
        if not jobs:
            return self._commit(out)

        ex = ThreadPoolExecutor(max_workers=max(1, min(self.max_workers, len(jobs))))
        try:
            futures = [(name, ex.submit(fn)) for name, fn in jobs]
            for name, fut in futures:
                try:
                    out.results.append(fut.result(timeout=self.timeout))
                except FutureTimeout:
                    fut.cancel()
                    msg = f"timed out after {self.timeout:g}s"
                    logger.warning("%s: %s", name, msg)
                    out.failures.append(DocumentFailure(file_name=name, message=msg))
                except Exception as e:
                    logger.warning("%s: extraction failed: %s", name, e)
                    out.failures.append(DocumentFailure(file_name=name, message=str(e)))
        finally:
            # a timed-out worker keeps running in the background; nobody waits for it
            ex.shutdown(wait=False, cancel_futures=True)

        return self._commit(out)

    def _commit(self, out: BatchResult) -> BatchResult:
        records = [r for res in out.results for r in parse_pages_to_records(res)]
        issues = validate_records(records)
        with self._lock:
            if not self.is_current(out.generation):
                logger.info("batch %d superseded by %d; results dropped", out.generation, self._generation)
                return out
            self.state.results = list(out.results)
            self.state.failures = list(out.failures)
            self.state.set_data(records, issues)
            out.committed = True
        logger.info("batch %d: %d document(s), %d record(s), %d issue(s), %d failure(s)",
                    out.generation, len(out.results), len(records), len(issues), len(out.failures))
        return out
