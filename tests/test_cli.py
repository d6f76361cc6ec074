import pandas as pd
import pytest

from capital_checker.cli import discover_pdfs, main

from conftest import WORKED_EXAMPLE, pdf_bytes


def test_discover_pdfs(tmp_path):
    (tmp_path / "sub").mkdir()
    for name in ("b.pdf", "A.PDF", "~$lock.pdf", "notes.txt", "sub/c.pdf"):
        (tmp_path / name).write_bytes(b"x")
    assert [p.name for p in discover_pdfs(tmp_path)] == ["A.PDF", "b.pdf", "c.pdf"]
    assert discover_pdfs(tmp_path / "b.pdf") == [tmp_path / "b.pdf"]
    assert discover_pdfs(tmp_path / "notes.txt") == []
    with pytest.raises(FileNotFoundError):
        discover_pdfs(tmp_path / "missing")


def test_main_writes_every_output(tmp_path, capsys):
    src = tmp_path / "in"
    src.mkdir()
    (src / "stmt.pdf").write_bytes(pdf_bytes(WORKED_EXAMPLE))
    out = tmp_path / "out" / "run"

    assert main(["--input", str(src), "--out", str(out), "--keep-debug"]) == 0

    for suffix in (".records.xlsx", ".records.csv", ".issues.xlsx", ".area_checks.xlsx"):
        assert out.with_suffix(suffix).exists()
    assert (tmp_path / "out" / "debug_pages" / "stmt_p01.txt").exists()

    df = pd.read_csv(out.with_suffix(".records.csv"))
    assert df["investorId"].tolist() == ["ABC123"]
    assert df["ending"].tolist() == [1066.0]

    printed = capsys.readouterr().out
    assert "[INFO] PDFs found: 1" in printed
    assert "errors: 0" in printed
    assert printed.rstrip().endswith("Done.")


def test_main_reads_debug_dumps(tmp_path):
    src = tmp_path / "in"
    src.mkdir()
    (src / "stmt.pdf").write_bytes(b"unreadable")
    dbg = src / "debug_pages"
    dbg.mkdir()
    (dbg / "stmt_p01.txt").write_text("\n".join(WORKED_EXAMPLE), encoding="utf-8")
    out = tmp_path / "run"

    assert main(["--input", str(src), "--out", str(out), "--use-debug-pages", "--no-area-workbook"]) == 0
    assert not out.with_suffix(".area_checks.xlsx").exists()
    assert pd.read_csv(out.with_suffix(".records.csv"))["investorId"].tolist() == ["ABC123"]


def test_main_fails_when_nothing_could_be_read(tmp_path, capsys):
    src = tmp_path / "in"
    src.mkdir()
    (src / "bad.pdf").write_bytes(b"garbage")

    assert main(["--input", str(src), "--out", str(tmp_path / "run")]) == 1
    assert "[WARN] bad.pdf:" in capsys.readouterr().out


def test_main_on_empty_folder(tmp_path):
    src = tmp_path / "in"
    src.mkdir()
    assert main(["--input", str(src), "--out", str(tmp_path / "run")]) == 0
    assert pd.read_csv(tmp_path / "run.records.csv").empty
