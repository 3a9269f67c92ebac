import streamlit as st

from diecast.auth import require_login
from diecast.errors import AnalysisError
from diecast.matching import purchase_check
from diecast.models import added_on, photo_preview_url, records_of
from diecast.state import collection, get_settings, render_sidebar
from diecast.vision import CarVision, prepare_image

CHECK_KEY = "purchase_check_analysis"

st.set_page_config(page_title="Purchase Check", layout="wide")
require_login()
render_sidebar()

st.title("Purchase Check")
st.caption("At the shop? Check whether the car is already in your collection.")

cars = records_of(collection())
criteria = {}
manual = ""

tab_photo, tab_text = st.tabs(["From a photo", "Type the model"])

with tab_photo:
    upload = st.file_uploader("Photo of the box", type=["jpg", "jpeg", "png", "webp"], key="check_upload")
    if upload is not None:
        try:
            cached = st.session_state.get(CHECK_KEY)
            if cached and cached[0] == upload.file_id:
                criteria = cached[1]
            else:
                with st.spinner("Reading the photo..."):
                    jpeg, _ = prepare_image(upload.getvalue())
                    criteria = CarVision.from_settings(get_settings()).analyze_car_image(jpeg)
                st.session_state[CHECK_KEY] = (upload.file_id, criteria)
            st.info(f"Identified: **{criteria.get('brand', '?')} {criteria.get('model', '?')}**")
        except AnalysisError as e:
            st.error(f"There was a problem analyzing the photo: {e}")

with tab_text:
    with st.form("manual_check"):
        manual = st.text_input("Model", placeholder="Skyline, 911, Civic...")
        st.form_submit_button("Check", use_container_width=True)

matches = purchase_check(criteria, cars, manual_search=manual)

if matches is None:
    st.stop()

st.markdown("---")
if matches:
    st.error(f"You already have {len(matches)} similar car(s)!")
    for car in matches:
        with st.container(border=True):
            c1, c2 = st.columns([1, 4])
            with c1:
                preview = photo_preview_url(car.get("photo_url", ""))
                if preview:
                    st.image(preview, width=90)
            with c2:
                st.markdown(f"**{car['brand']} {car['model']}**")
                st.caption(", ".join(v for v in [car.get("manufacturer"), car.get("color"), car.get("pack")] if v))
                when = added_on(car["car_id"])
                if when:
                    st.caption(f"Added {when:%Y-%m-%d}")
else:
    st.success("Not in the collection. Good buy!")
