import streamlit as st

from diecast.auth import require_login
from diecast.errors import AnalysisError
from diecast.matching import MATCH_EXACT, MATCH_STRONG, find_duplicates
from diecast.models import photo_preview_url, records_of
from diecast.state import (
    EDIT_KEY,
    FAILED_ANALYSIS_KEY,
    PREFILL_KEY,
    analyze_once,
    collection,
    get_settings,
    render_sidebar,
    set_collection,
    store,
)
from diecast.vision import CarVision, form_prefill, prepare_image, scanned_record

SCAN_KEY = "scanner_result"

BADGES = {
    MATCH_EXACT: "🔴",
    MATCH_STRONG: "🟠",
}


def _clear_scan():
    st.session_state.pop(SCAN_KEY, None)
    st.session_state.pop(FAILED_ANALYSIS_KEY, None)
    st.session_state.pop("scanner_upload", None)
    st.session_state.pop("scanner_camera", None)


# =========================================================
# UI
# =========================================================

st.set_page_config(page_title="Scanner", layout="wide")
require_login()
render_sidebar()

st.title("Scanner")
st.caption("Photograph a car: the AI reads it and checks it against your collection.")

scan = st.session_state.get(SCAN_KEY)

# ---------------------------
# Step 1: scan
# ---------------------------
if scan is None:
    shot = st.camera_input("Take a photo", key="scanner_camera")
    upload = st.file_uploader("...or upload one", type=["jpg", "jpeg", "png", "webp"], key="scanner_upload")
    source = shot or upload

    if source is not None:
        try:
            with st.spinner("Analyzing the photo..."):
                jpeg, data_url = prepare_image(source.getvalue())
                analysis = analyze_once(
                    source.file_id,
                    lambda: CarVision.from_settings(get_settings()).analyze_car_image(jpeg),
                )
        except AnalysisError as e:
            st.error(f"There was a problem analyzing the photo: {e}")
            st.stop()

        matches = find_duplicates(analysis, records_of(collection()))
        st.session_state[SCAN_KEY] = {"analysis": analysis, "photo": data_url, "matches": matches}
        st.rerun()
    st.stop()

# ---------------------------
# Step 2: result
# ---------------------------
analysis = scan["analysis"]
matches = scan["matches"]

left, right = st.columns([1, 2])
with left:
    st.image(scan["photo"], use_container_width=True)
with right:
    st.subheader(f"{analysis.get('brand', '?')} {analysis.get('model', '?')}")
    st.markdown(
        f"**Manufacturer:** {analysis.get('manufacturer', '-')}  \n"
        f"**Color:** {analysis.get('color', '-')}  \n"
        f"**Year:** {analysis.get('year', '-')}  \n"
        f"**Pack:** {analysis.get('pack', '-')}"
    )
    if analysis.get("notes"):
        st.caption(analysis["notes"])

    if any(m["match_type"] == MATCH_EXACT for m in matches):
        st.error("You already have this one!")
    elif matches:
        st.warning(f"Similar cars in the collection ({len(matches)}). Check before buying.")
    else:
        st.success("New to the collection!")

if matches:
    st.markdown(f"#### Cross-check alerts ({len(matches)})")
    for m in matches:
        with st.container(border=True):
            c1, c2 = st.columns([1, 4])
            with c1:
                preview = photo_preview_url(m.get("photo_url", ""))
                if preview:
                    st.image(preview, width=90)
                else:
                    st.markdown(f"## {BADGES.get(m['match_type'], '🟡')}")
            with c2:
                st.markdown(f"**{m['brand']} {m['model']}**: {m['match_reason']}")
                details = ", ".join(v for v in [m.get("manufacturer"), m.get("color"), m.get("year"), m.get("pack")] if v)
                st.caption(details)

st.markdown("---")
b1, b2, b3 = st.columns(3)
with b1:
    if st.button("💾 Save directly", type="primary", use_container_width=True):
        try:
            with st.spinner("Saving..."):
                set_collection(store().save(scanned_record(analysis, scan["photo"])))
        except OSError as e:
            st.error(f"Error saving: {e}")
        else:
            _clear_scan()
            st.toast("Saved to the collection.")
            st.rerun()
with b2:
    if st.button("✏️ Review in form", use_container_width=True):
        st.session_state.pop(EDIT_KEY, None)
        st.session_state[PREFILL_KEY] = form_prefill(analysis, scan["photo"])
        _clear_scan()
        st.switch_page("pages/3_Add_Car.py")
with b3:
    if st.button("📷 Scan another", use_container_width=True):
        _clear_scan()
        st.rerun()
