import logging

import streamlit as st

from diecast.auth import is_authenticated, login
from diecast.state import get_settings, init_collection, render_sidebar
from diecast.stats import collection_stats

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

st.set_page_config(page_title="Die-cast Collection", page_icon="🏎️", layout="wide")

settings = get_settings()

if not is_authenticated():
    st.title("Die-cast Collection")
    st.caption("Private garage. Sign in to continue.")

    if not settings.auth_email:
        st.error('No login configured: add an [auth] table with "email" and "password" to secrets.toml.')
        st.stop()

    _, mid, _ = st.columns([1, 2, 1])
    with mid:
        with st.form("login_form"):
            email = st.text_input("E-mail", autocomplete="email")
            password = st.text_input("Password", type="password", autocomplete="current-password")
            submitted = st.form_submit_button("Sign in", type="primary", use_container_width=True)

        if submitted:
            if login(email, password, settings):
                st.rerun()
            else:
                st.error("Wrong e-mail or password. Access denied.")
    st.stop()

render_sidebar()
df = init_collection()
stats = collection_stats(df)

st.title("Die-cast Collection")
st.caption("Dashboard, collection list, new items and data tools are under Pages.")

k1, k2, k3 = st.columns(3)
k1.metric("Cars", f"{stats.total_cars:,}")
k2.metric("Unique brands", f"{stats.total_brands:,}")
top = stats.top_manufacturer
k3.metric("Top manufacturer", top[0] if top else "-")

st.markdown(
    """
**Where to go**
- Dashboard: fleet breakdown by manufacturer, brand and color
- Collection: search, filter, edit and delete
- Add Car: manual entry (with optional photo auto-fill)
- Scanner: photograph a car and check it against the collection
- Purchase Check: quick "do I already have it?" lookup at the shop
- Data: push to the sheet, CSV import/export, PDF catalog
"""
)
