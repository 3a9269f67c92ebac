import streamlit as st

from diecast.auth import require_login
from diecast.csv_io import export_csv, export_pdf, parse_csv
from diecast.errors import AnalysisError, SyncError
from diecast.models import records_of
from diecast.state import collection, get_settings, refresh_collection, render_sidebar, set_collection, store
from diecast.vision import CarVision

st.set_page_config(page_title="Data", layout="wide")
require_login()
render_sidebar()

st.title("Data")

s = store()
df = collection()
settings = get_settings()

# ----------------------------
# Sync status
# ----------------------------
with st.container(border=True):
    c1, c2 = st.columns([3, 1])
    with c1:
        st.subheader("Cloud sync")
        if s.has_remote:
            target = "Apps Script endpoint" if settings.remote_kind == "apps_script" else "Google Sheet"
            st.caption(f"Connected to the {target}. {len(df):,} cars loaded.")
        else:
            st.caption("No sync_url or spreadsheet_id in secrets: working from the local cache only.")
    with c2:
        if st.button("🔄 Reload", use_container_width=True):
            refresh_collection()
            st.success("Reloaded.")

tab_push, tab_import, tab_export, tab_config = st.tabs(["Push to cloud", "Import CSV", "Export", "Read config"])

with tab_push:
    st.write("Send every local car to the sheet (upsert by id). Use after an import or offline work.")
    confirm = st.checkbox(f"Yes, send all {len(df):,} local cars to the sheet")
    if st.button("⬆️ Push all", type="primary", disabled=not (confirm and s.has_remote)):
        bar = st.progress(0.0)
        try:
            pushed, failed = s.push_all(records_of(df), progress=lambda i, n: bar.progress(i / max(n, 1)))
        except SyncError as e:
            st.error(f"Error syncing: {e}")
        else:
            if failed:
                st.warning(f"Pushed {pushed:,}, failed {failed:,}. See the log for details.")
            else:
                st.success(f"Sync complete: {pushed:,} cars.")

with tab_import:
    st.write("Columns: Brand, Model, Manufacturer, Color, Year, Pack, Notes, Photo URL. Header row optional.")
    upload = st.file_uploader("CSV file", type=["csv", "txt"], key="import_upload")
    csv_input = st.text_area("...or paste CSV", height=160, key="import_text")

    if st.button("Import", type="primary"):
        text = upload.getvalue().decode("utf-8-sig") if upload is not None else csv_input
        if not text.strip():
            st.warning("Nothing to import.")
        else:
            parsed = parse_csv(text)
            if not parsed:
                st.error("No rows with at least Brand, Model and Manufacturer found.")
            else:
                set_collection(s.import_batch(parsed))
                st.success(f"Imported {len(parsed):,} cars. Use Push to cloud to send them to the sheet.")

with tab_export:
    if df.empty:
        st.info("Nothing to export yet.")
    else:
        c1, c2 = st.columns(2)
        with c1:
            st.download_button(
                "Download CSV",
                data=export_csv(df).encode("utf-8"),
                file_name="diecast_collection.csv",
                mime="text/csv",
                use_container_width=True,
            )
        with c2:
            st.download_button(
                "Download PDF catalog",
                data=export_pdf(df),
                file_name="diecast_catalog.pdf",
                mime="application/pdf",
                use_container_width=True,
            )

with tab_config:
    st.write(
        "Upload a screenshot of the Apps Script deployment / OAuth client page. "
        "The AI reads the values so you can paste them into `.streamlit/secrets.toml`."
    )
    shot = st.file_uploader("Screenshot", type=["png", "jpg", "jpeg", "webp"], key="config_upload")
    if shot is not None and st.button("Read values"):
        try:
            with st.spinner("Reading the screenshot..."):
                found = CarVision.from_settings(settings).analyze_config_image(shot.getvalue(), shot.type or "image/png")
        except AnalysisError as e:
            st.error(f"Could not read the screenshot: {e}")
        else:
            if not found:
                st.warning("No client id or sync URL found in that image.")
            else:
                lines = []
                if found.get("sync_url"):
                    lines.append(f'sync_url = "{found["sync_url"]}"')
                if found.get("client_id"):
                    lines.append(f'google_client_id = "{found["client_id"]}"')
                st.code("\n".join(lines), language="toml")
