# capital_checker/lines.py
from __future__ import annotations

from typing import Iterable, List, Sequence

from capital_checker.models import TextItem
from capital_checker.rules import LINE_Y_TOLERANCE


def assemble_lines(items: Iterable[TextItem], tolerance: float = LINE_Y_TOLERANCE) -> List[str]:
    """
    Group text fragments into lines by vertical proximity.

    Items are taken in provider order and never re-sorted: a fragment whose
    y differs from the open line's y by more than `tolerance` closes that line
    and opens a new one. Out-of-order providers can therefore interleave lines.
    """
    lines: List[str] = []
    buf: List[str] = []
    current_y: float | None = None

    for it in items:
        if current_y is None:
            current_y = it.y
            buf.append(it.text)
            continue
        if abs(it.y - current_y) > tolerance:
            lines.append(" ".join(buf))
            buf = [it.text]
            current_y = it.y
        else:
            buf.append(it.text)

    if buf:
        lines.append(" ".join(buf))
    return lines


def assemble_pages(pages: Sequence[Sequence[TextItem]], tolerance: float = LINE_Y_TOLERANCE) -> List[List[str]]:
    return [assemble_lines(page, tolerance) for page in pages]
