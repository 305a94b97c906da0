"""
app.py — Streamlit UI for the retention archiver.
Run with:  streamlit run app.py
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd
import streamlit as st
from pydantic import ValidationError

# ── Ensure repo root is on sys.path so sibling modules resolve ─────────────
sys.path.insert(0, str(Path(__file__).parent))

from archiver import run_archive
from config import Config
from log_store import LogValidationError, read_log_frame
from models import OperationResult
from replicator import run_replicate
from rollback_engine import run_rollback

# ── Logging setup ─────────────────────────────────────────────────────────────
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
)
logger = logging.getLogger("app")

FATAL_ERRORS = (FileNotFoundError, NotADirectoryError, LogValidationError, ValidationError)

# ── Page config ───────────────────────────────────────────────────────────────
st.set_page_config(
    page_title="Retention Archiver",
    page_icon="📦",
    layout="wide",
    initial_sidebar_state="expanded",
)

# ── Custom CSS ────────────────────────────────────────────────────────────────
st.markdown(
    """
    <style>
    [data-testid="stSidebar"] { background: #1a1a2e; }
    [data-testid="stSidebar"] * { color: #e0e0e0 !important; }
    .metric-card {
        background: #16213e;
        border-radius: 10px;
        padding: 16px;
        text-align: center;
        color: white;
    }
    .metric-card h2 { margin: 4px 0; font-size: 2rem; }
    .metric-card p  { margin: 0; font-size: 0.85rem; color: #aaa; }
    </style>
    """,
    unsafe_allow_html=True,
)


# ── Session state initialisation ──────────────────────────────────────────────

def _init_state() -> None:
    defaults = {
        "metrics": {},        # label -> value of the last run
        "results": [],        # List[dict] of OperationResult
        "log_path": None,     # log written by the last run
    }
    for key, val in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = val


_init_state()


# ── Helpers ───────────────────────────────────────────────────────────────────

def _store_run(metrics: Dict[str, int], results: List[OperationResult], log_path: Optional[str]) -> None:
    st.session_state.metrics = metrics
    st.session_state.results = [r.model_dump() for r in results]
    st.session_state.log_path = log_path


def _results_to_df(results: List[Dict[str, Any]]) -> pd.DataFrame:
    if not results:
        return pd.DataFrame()
    df = pd.DataFrame(results)
    # Shorten long paths for display
    df["display_item"] = df["item"].apply(lambda p: "…/" + "/".join(Path(p).parts[-2:]))
    col_order = ["display_item", "status", "destination", "reason"]
    return df[[c for c in col_order if c in df.columns]]


# ── Sidebar ───────────────────────────────────────────────────────────────────

with st.sidebar:
    st.title("📦 Retention Archiver")
    st.caption("Archive stale directories with a reversible log")
    for problem in Config.validate():
        st.warning(f"Environment: {problem}")
    st.divider()

    mode = st.radio("Operation", options=["Archive", "Rollback", "Replicate"], horizontal=True)
    st.divider()

    if mode == "Archive":
        source_root = st.text_input("Source Root", value=Config.SOURCE_ROOT,
                                    placeholder="/data/projects")
        archive_folder = st.text_input("Archive Subfolder", value=Config.ARCHIVE_FOLDER)
        retention_days = st.number_input("Retention (days)", min_value=1,
                                         value=Config.RETENTION_DAYS, step=1)
    else:
        log_file = st.text_input("Archive Log", placeholder="/data/projects/archive_log_2024-01-31.csv")
        if mode == "Replicate":
            dest_root = st.text_input("Destination Root", placeholder="/backup")
            replicate_source = st.text_input("Source Root (optional)",
                                             help="Defaults to the folder holding the log")

    dry_run = st.toggle("Dry Run Mode", value=True, help="Preview actions without touching files")
    run_btn = st.button(f"🚀 Run {mode}", use_container_width=True, type="primary")


# ── Main panel ────────────────────────────────────────────────────────────────

st.title("📦 Retention Archiver")
st.caption("Move directories untouched for the retention period; undo or copy them from the log")

if run_btn:
    try:
        if mode == "Archive":
            settings = Config.settings(
                source_root=source_root,
                archive_folder=archive_folder,
                retention_days=int(retention_days),
            )
            with st.spinner("🔍 Scanning and archiving…"):
                summary = run_archive(settings, dry_run=dry_run)
            _store_run(
                {
                    "Dirs Archived": summary.directories_archived,
                    "Dirs Skipped": summary.directories_skipped,
                    "Files Moved": summary.files_moved,
                    "Planned": summary.planned,
                    "Failed": summary.files_failed,
                },
                summary.results,
                summary.log_path,
            )
        elif mode == "Rollback":
            if not log_file:
                st.error("Please enter an archive log path in the sidebar.")
                st.stop()
            with st.spinner("↩️ Restoring files…"):
                summary = run_rollback(Path(log_file), dry_run=dry_run)
            _store_run(
                {"Restored": summary.restored, "Planned": summary.planned, "Failed": summary.failed},
                summary.results,
                summary.log_path,
            )
        else:
            if not log_file or not dest_root:
                st.error("Please enter both the archive log and the destination root.")
                st.stop()
            with st.spinner("📁 Copying directories…"):
                summary = run_replicate(
                    Path(log_file),
                    Path(dest_root),
                    source_root=Path(replicate_source) if replicate_source else None,
                    dry_run=dry_run,
                )
            _store_run(
                {"Copied": summary.copied, "Planned": summary.planned, "Failed": summary.failed},
                summary.results,
                summary.log_path,
            )
        mode_label = "DRY RUN" if dry_run else "APPLIED"
        st.success(f"[{mode_label}] {mode} finished.")
    except FATAL_ERRORS as exc:
        st.error(str(exc))
        logger.error("%s failed: %s", mode, exc)


# ── Results display ───────────────────────────────────────────────────────────

if st.session_state.metrics:
    st.subheader("📊 Summary")
    cols = st.columns(len(st.session_state.metrics))
    for col, (label, value) in zip(cols, st.session_state.metrics.items()):
        with col:
            st.markdown(
                f'<div class="metric-card"><h2>{value}</h2><p>{label}</p></div>',
                unsafe_allow_html=True,
            )
    if st.session_state.log_path:
        st.caption(f"Log written: `{st.session_state.log_path}`")

    st.divider()
    st.subheader("📋 Results")
    display_df = _results_to_df(st.session_state.results)
    if not display_df.empty:
        st.dataframe(
            display_df,
            use_container_width=True,
            hide_index=True,
            column_config={
                "display_item": st.column_config.TextColumn("Item", width="large"),
                "status":       st.column_config.TextColumn("Status"),
                "destination":  st.column_config.TextColumn("Destination", width="large"),
                "reason":       st.column_config.TextColumn("Reason"),
            },
        )
    else:
        st.info("No per-item results for this run.")
else:
    st.info("👈 **Choose an operation in the sidebar and click Run** to begin.")

# ── Log preview ───────────────────────────────────────────────────────────────
preview_path = st.session_state.log_path or (log_file if mode != "Archive" else None)
if preview_path:
    with st.expander("📜 Log Preview", expanded=False):
        try:
            st.dataframe(read_log_frame(Path(preview_path)), use_container_width=True, hide_index=True)
        except (FileNotFoundError, LogValidationError) as exc:
            st.warning(str(exc))
