import shutil
import tempfile
from pathlib import Path

import streamlit as st

from capital_checker.area_tables import build_area_workbook
from capital_checker.batch import ExtractionSession, jobs_from_bytes
from capital_checker.export import (
    records_frame,
    issues_frame,
    write_area_workbook,
    write_issues_xlsx,
    write_records_xlsx,
)
from capital_checker.models import record_key
from capital_checker.rules import EXTRACTION_TIMEOUT_S, FIELD_ATTRS

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

st.set_page_config(page_title="Capital Account Checker")

st.title("Capital Account Checker")
st.markdown("""
Upload one or more **capital account statements (.pdf)**.

The app extracts each investor's balances, checks
`beginning + contributions - withdrawals + P&L - fees = ending`
and flags duplicates and missing fields.
""")

st.subheader("Settings")

timeout = st.number_input(
    "Per-document timeout (seconds)",
    min_value=1.0,
    value=float(EXTRACTION_TIMEOUT_S),
    step=5.0,
)
with_area = st.checkbox("Also build the balance/contribution check workbook", value=True)

# survives reruns; a new upload bumps the session generation
if "session" not in st.session_state:
    st.session_state["session"] = ExtractionSession()
session: ExtractionSession = st.session_state["session"]
session.timeout = float(timeout)
state = session.state

uploaded = st.file_uploader("📄 Drop PDFs here", type=["pdf"], accept_multiple_files=True)


def _xlsx_bytes(write, *args) -> bytes:
    tmpdir = Path(tempfile.mkdtemp())
    try:
        path = write(*args, tmpdir / "out.xlsx")
        return Path(path).read_bytes()
    finally:
        shutil.rmtree(tmpdir, ignore_errors=True)


if uploaded and st.button("▶️ Extract and validate"):
    status = st.empty()
    status.info("⚙️ Extracting... please wait")
    docs = [(f.name, f.getvalue()) for f in uploaded]
    batch = session.run_batch(jobs_from_bytes(docs))
    if batch.committed:
        status.success(f"Done: {len(state.records)} record(s) from {len(batch.results)} file(s).")
    else:
        status.warning("This run was superseded by a newer upload.")

for f in state.failures:
    st.error(f"❌ {f.file_name}: {f.message}")

if state.records:
    st.subheader("Records")
    only_bad = st.checkbox("Show only problematic records")
    shown = state.problematic_records() if only_bad else state.records
    st.dataframe(records_frame(shown), use_container_width=True)

    with st.expander("Edit a record"):
        keys = list(dict.fromkeys(record_key(r) for r in state.records))
        key = st.selectbox("Record", keys)
        field = st.selectbox("Field", ["investor_id", *FIELD_ATTRS.values()])
        value = st.text_input("New value (blank clears an amount)")
        if st.button("Apply edit"):
            try:
                if field == "investor_id":
                    state.update_record(key, investor_id=value)
                else:
                    state.update_record(key, **{field: float(value) if value.strip() else None})
                st.rerun()
            except (KeyError, ValueError) as e:
                st.error(f"❌ {e}")

    st.subheader("Issues")
    st.dataframe(issues_frame(state.issues), use_container_width=True)

    st.download_button(
        label="⬇️ Records (.xlsx)",
        data=_xlsx_bytes(lambda recs, p: write_records_xlsx(recs, p, issues=state.issues), state.records),
        file_name="records.xlsx",
        mime=XLSX_MIME,
    )
    st.download_button(
        label="⬇️ Records (.csv)",
        data=records_frame(state.records).to_csv(index=False).encode("utf-8"),
        file_name="records.csv",
        mime="text/csv",
    )
    st.download_button(
        label="⬇️ Issues (.xlsx)",
        data=_xlsx_bytes(write_issues_xlsx, state.issues),
        file_name="issues.xlsx",
        mime=XLSX_MIME,
    )

if state.results and with_area:
    st.download_button(
        label="⬇️ Balance checks (.xlsx)",
        data=_xlsx_bytes(write_area_workbook, build_area_workbook(state.results)),
        file_name="FXP_result.xlsx",
        mime=XLSX_MIME,
    )
elif not uploaded:
    st.info("Please upload PDF statements first.")
