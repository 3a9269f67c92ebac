# pages/1_Dashboard.py
import streamlit as st

from diecast.auth import current_profile, require_login
from diecast.charts import bar_chart, color_pie
from diecast.state import collection, render_sidebar
from diecast.stats import collection_stats

# =========================
# Page config
# =========================
st.set_page_config(page_title="Dashboard", layout="wide")
require_login()
render_sidebar()

df = collection()
stats = collection_stats(df)

name = current_profile().get("name", "")
st.title(f"Hey, {name}!" if name else "Dashboard")
st.caption("Your collection at a glance.")

if df.empty:
    st.info("No cars yet. Add your first one under Add Car or Scanner.")
    st.stop()

# =========================
# Totals
# =========================
k1, k2, k3 = st.columns(3)
k1.metric("Total inventory", f"{stats.total_cars:,}")
k2.metric("Unique brands", f"{stats.total_brands:,}")
top = stats.top_manufacturer
k3.metric("Top manufacturer", top[0] if top else "-", f"{top[1]:,} units" if top else None, delta_color="off")

st.markdown("---")
st.markdown("### Fleet breakdown")

# =========================
# Manufacturers
# =========================
with st.expander(f"Manufacturers: {top[0]} leads" if top else "Manufacturers", expanded=True):
    if stats.manufacturers.empty:
        st.caption("No manufacturer recorded yet.")
    else:
        st.altair_chart(bar_chart(stats.manufacturers, "Manufacturer"), use_container_width=True)

# =========================
# Brands
# =========================
top_brand = stats.brands.iloc[0]["name"] if not stats.brands.empty else None
with st.expander(f"Brands: {top_brand} leads" if top_brand else "Brands"):
    if stats.brands.empty:
        st.caption("No brand recorded yet.")
    else:
        st.altair_chart(bar_chart(stats.brands, "Brand"), use_container_width=True)
        st.dataframe(
            stats.brands.rename(columns={"name": "Brand", "value": "Cars"}),
            use_container_width=True,
            hide_index=True,
        )

# =========================
# Colors
# =========================
top_color = stats.colors.iloc[0]["name"] if not stats.colors.empty else None
with st.expander(f"Colors: mostly {top_color}" if top_color else "Colors"):
    left, right = st.columns([2, 1])
    with left:
        st.altair_chart(color_pie(stats.colors), use_container_width=True)
    with right:
        st.dataframe(
            stats.colors.rename(columns={"name": "Color", "value": "Cars"}),
            use_container_width=True,
            hide_index=True,
        )
