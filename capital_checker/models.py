# capital_checker/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional


@dataclass
class TextItem:
    x: float
    y: float  # PDF origin: grows upwards from the bottom of the page
    text: str


@dataclass
class PageSize:
    width: float
    height: float


@dataclass
class ParseResult:
    file_name: str
    pages: List[List[str]]
    page_sizes: Optional[List[PageSize]] = None
    items: Optional[List[List[TextItem]]] = None


@dataclass
class InvestorRecord:
    file_name: str
    page: int
    investor_id: str
    beginning_balance: Optional[float] = None
    contributions: Optional[float] = None
    withdrawals: Optional[float] = None
    pnl: Optional[float] = None
    fees: Optional[float] = None
    ending_balance: Optional[float] = None
    edited: bool = False


@dataclass(frozen=True)
class Issue:
    type: Literal["error", "warning"]
    code: str
    message: str
    file_name: str
    page: Optional[int] = None
    investor_id: Optional[str] = None


@dataclass
class DocumentFailure:
    file_name: str
    message: str


@dataclass
class BatchResult:
    generation: int
    results: List[ParseResult] = field(default_factory=list)
    failures: List[DocumentFailure] = field(default_factory=list)
    committed: bool = False


class ExtractionError(Exception):
    """The PDF text provider could not produce a ParseResult for a document."""


def record_key(r: InvestorRecord) -> str:
    return f"{r.file_name}:{r.page}:{r.investor_id}"
