"""
Share Your Moments — Streamlit upload page
Guests pick photos and videos and send them to the event Drive folder.
"""

import asyncio

import streamlit as st

from media_pipeline.admission import RawFile, admit, format_size
from media_pipeline.client import FunctionsClient
from media_pipeline.compressor import ImageCompressor
from media_pipeline.config import Config
from media_pipeline.models import MediaKind, UploadBatch, UploadItem, UploadStatus
from media_pipeline.scheduler import BatchSummary, UploadScheduler

# ── Page Config ─────────────────────────────────────────

st.set_page_config(
    page_title="Share Your Moments",
    page_icon="📸",
    layout="centered",
)

STATUS_BADGE = {
    UploadStatus.PENDING: "⏳ Ready",
    UploadStatus.UPLOADING: "⬆️ Uploading",
    UploadStatus.SUCCESS: "✅ Uploaded",
    UploadStatus.ERROR: "❌ Failed",
}
SUMMARY_ICON = {"success": "✅", "partial": "⚠️", "error": "❌"}

# ── Session State ───────────────────────────────────────

if "batch" not in st.session_state:
    st.session_state.batch = UploadBatch()
if "uploader_key" not in st.session_state:
    st.session_state.uploader_key = 0
if "functions" not in st.session_state:
    st.session_state.functions = FunctionsClient()
if "last_summary" not in st.session_state:
    st.session_state.last_summary = None
if "config_warning" not in st.session_state:
    st.session_state.config_warning = None

batch: UploadBatch = st.session_state.batch


def load_folder_id() -> str | None:
    """Ask get-config for the destination folder until a non-empty one arrives."""
    folder_id, error = asyncio.run(st.session_state.functions.upload_folder_id())
    st.session_state.config_warning = error
    return folder_id


def run_upload(folder_id: str | None, log) -> BatchSummary:
    def on_status(item: UploadItem) -> None:
        log.write(f"{STATUS_BADGE[item.status]} — {item.original.filename}")

    async def _run() -> BatchSummary:
        compressor = ImageCompressor()
        try:
            scheduler = UploadScheduler(st.session_state.functions, compressor=compressor, on_status=on_status)
            return await scheduler.run(batch, folder_id)
        finally:
            compressor.shutdown()

    return asyncio.run(_run())


# ── Header ──────────────────────────────────────────────

st.title("📸 Share Your Moments")
st.caption(
    f"Photos up to {Config.MAX_IMAGE_BYTES // (1024 * 1024)} MB and videos up to "
    f"{Config.MAX_VIDEO_BYTES // (1024 * 1024)} MB. Large photos are resized before upload."
)

summary: BatchSummary | None = st.session_state.last_summary
if summary is not None:
    st.session_state.last_summary = None
    if st.session_state.config_warning:
        st.warning(st.session_state.config_warning)
    st.toast(summary.message, icon=SUMMARY_ICON[summary.level])

# ── File Picker ─────────────────────────────────────────

picked = st.file_uploader(
    "Choose photos or videos",
    accept_multiple_files=True,
    key=f"uploader_{st.session_state.uploader_key}",
)
if picked:
    report = admit(
        [RawFile(name=f.name, mime_type=f.type or "", data=f.getvalue()) for f in picked],
        batch,
    )
    for message in report.messages:
        st.error(message)
    # Fresh widget so the same files are not admitted twice on rerun
    st.session_state.uploader_key += 1
    if report.accepted:
        st.rerun()

# ── Selected Files ──────────────────────────────────────

if len(batch):
    counts = batch.counts()
    st.subheader(f"Selected files ({len(batch)})")
    for item in list(batch):
        col_preview, col_info, col_action = st.columns([1, 3, 1])
        with col_preview:
            if item.kind is MediaKind.IMAGE and item.preview is not None:
                st.image(item.preview.tobytes(), width="stretch")
            else:
                st.markdown("🎬")
        with col_info:
            st.markdown(f"**{item.original.filename}**")
            detail = format_size(item.original.size)
            if item.was_compressed:
                detail += f" → {format_size(item.size_bytes)}"
            st.caption(f"{STATUS_BADGE[item.status]} · {detail}")
            if item.status is UploadStatus.ERROR and item.error:
                st.caption(f":red[{item.error.message}]")
        with col_action:
            if item.status is not UploadStatus.UPLOADING:
                if st.button("Remove", key=f"remove_{item.id}"):
                    batch.remove(item.id)
                    st.rerun()

    pending = counts.get(UploadStatus.PENDING, 0)
    col_upload, col_clear = st.columns([3, 1])
    with col_upload:
        upload_clicked = st.button(
            f"⬆️ Upload all ({pending})",
            type="primary",
            width="stretch",
            disabled=pending == 0,
        )
    with col_clear:
        if st.button("Clear", width="stretch"):
            batch.clear()
            st.rerun()

    if upload_clicked:
        folder_id = load_folder_id()
        with st.status("Uploading…", expanded=True) as status_box:
            summary = run_upload(folder_id, status_box)
            status_box.update(
                label=summary.message,
                state="complete" if summary.level == "success" else "error",
            )
        # Redraw the grid with the settled statuses and inline errors
        st.session_state.last_summary = summary
        st.rerun()
else:
    st.info("No files selected yet.")
