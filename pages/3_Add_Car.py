import streamlit as st

from diecast.auth import require_login
from diecast.errors import AnalysisError
from diecast.models import DEFAULT_MANUFACTURER, MANUFACTURER_OPTIONS, new_car_id, photo_preview_url
from diecast.state import EDIT_KEY, PREFILL_KEY, collection, get_settings, render_sidebar, set_collection, store
from diecast.vision import CarVision, form_prefill, merge_analysis, prepare_image

PHOTO_KEY = "form_photo_data_url"
PHOTO_BYTES_KEY = "form_photo_jpeg"


def _editing_record():
    car_id = st.session_state.get(EDIT_KEY)
    if not car_id:
        return None
    df = collection()
    hit = df[df["car_id"] == car_id]
    if hit.empty:
        st.session_state.pop(EDIT_KEY, None)
        return None
    return hit.iloc[0].to_dict()


def _reset_form():
    for k in [EDIT_KEY, PREFILL_KEY, PHOTO_KEY, PHOTO_BYTES_KEY, "form_photo_upload"]:
        st.session_state.pop(k, None)


# =========================================================
# UI
# =========================================================

st.set_page_config(page_title="Add Car", layout="wide")
require_login()
render_sidebar()

editing = _editing_record()
st.title("Edit Car" if editing else "Add Car")

if editing:
    st.caption(f"Editing {editing['brand']} {editing['model']} (id {editing['car_id']})")
    if st.button("Cancel edit"):
        _reset_form()
        st.rerun()

prefill = dict(editing or {})
prefill.update(st.session_state.get(PREFILL_KEY, {}) or {})

# ---------------------------
# Photo (optional) + AI auto-fill
# ---------------------------
st.subheader("Photo (optional)")
p1, p2 = st.columns([2, 1])
with p1:
    upload = st.file_uploader("Car photo", type=["jpg", "jpeg", "png", "webp"], key="form_photo_upload")
    if upload is not None:
        try:
            jpeg, data_url = prepare_image(upload.getvalue())
            st.session_state[PHOTO_BYTES_KEY] = jpeg
            st.session_state[PHOTO_KEY] = data_url
        except AnalysisError as e:
            st.error(f"Could not read that image: {e}")

    if st.session_state.get(PHOTO_BYTES_KEY):
        if st.button("✨ Auto-fill from photo", use_container_width=True):
            try:
                with st.spinner("Reading the photo..."):
                    analysis = CarVision.from_settings(get_settings()).analyze_car_image(st.session_state[PHOTO_BYTES_KEY])
                st.session_state[PREFILL_KEY] = merge_analysis(prefill, analysis) if prefill else form_prefill(analysis)
                st.rerun()
            except AnalysisError as e:
                st.error(f"There was a problem analyzing the photo: {e}")

with p2:
    preview = st.session_state.get(PHOTO_KEY) or prefill.get("photo_base64") or photo_preview_url(prefill.get("photo_url", ""))
    if preview:
        st.image(preview, use_container_width=True)

st.markdown("---")

# ---------------------------
# Form
# ---------------------------
manufacturer_value = prefill.get("manufacturer") or DEFAULT_MANUFACTURER
manufacturer_opts = MANUFACTURER_OPTIONS if manufacturer_value in MANUFACTURER_OPTIONS else [manufacturer_value] + MANUFACTURER_OPTIONS

with st.form("car_form_v1", clear_on_submit=False):
    c1, c2, c3 = st.columns(3)
    with c1:
        brand = st.text_input("Brand*", value=prefill.get("brand", ""), placeholder="Porsche, Toyota, Ford, ...")
        model = st.text_input("Model*", value=prefill.get("model", ""), placeholder="911 GT3, Supra, Mustang, ...")
    with c2:
        manufacturer = st.selectbox("Manufacturer", manufacturer_opts, index=manufacturer_opts.index(manufacturer_value))
        color = st.text_input("Color", value=prefill.get("color", ""), placeholder="Red, Blue, ...")
        year = st.text_input("Year (optional)", value=prefill.get("year", ""), placeholder="2024")
    with c3:
        pack = st.text_input("Pack / series (optional)", value=prefill.get("pack", ""), placeholder="HW Exotics, 5-pack, ...")
        notes = st.text_area("Notes (optional)", value=prefill.get("notes", ""), height=92)

    submitted = st.form_submit_button("Save changes" if editing else "Add to collection", type="primary", use_container_width=True)

if submitted:
    if not brand.strip() or not model.strip():
        st.error("Brand and Model are required!")
    else:
        record = {
            "car_id": editing["car_id"] if editing else new_car_id(),
            "brand": brand.strip(),
            "model": model.strip(),
            "manufacturer": manufacturer.strip(),
            "color": color.strip(),
            "year": year.strip(),
            "pack": pack.strip(),
            "notes": notes.strip(),
            "photo_url": (editing or {}).get("photo_url", ""),
        }
        photo = st.session_state.get(PHOTO_KEY) or prefill.get("photo_base64", "")
        if photo:
            record["photo_base64"] = photo

        with st.spinner("Saving..."):
            set_collection(store().save(record))
        _reset_form()
        st.success(f"Saved: {record['brand']} {record['model']} ({record['manufacturer']})")
