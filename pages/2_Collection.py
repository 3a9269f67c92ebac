import streamlit as st

from diecast.auth import require_login
from diecast.csv_io import export_csv
from diecast.filters import facet_options, filter_collection
from diecast.models import CAR_COLUMNS, car_label, changed_records, photo_preview_url
from diecast.state import EDIT_KEY, collection, render_sidebar, set_collection, store

# =========================================================
# UI
# =========================================================

st.set_page_config(page_title="Collection", layout="wide")
require_login()
render_sidebar()

st.title("Collection")

df = collection()
if df.empty:
    st.info("No cars yet. Add some under Add Car or Scanner.")
    st.stop()

f1, f2, f3 = st.columns([2, 1.2, 1.2])
with f1:
    search = st.text_input("Search (model/brand/pack)", placeholder="Type to filter…")
with f2:
    brand_filter = st.selectbox("Brand", ["All brands"] + facet_options(df, "brand"))
with f3:
    mfg_filter = st.selectbox("Manufacturer", ["All manufacturers"] + facet_options(df, "manufacturer"))

filtered = filter_collection(
    df,
    search=search.strip(),
    brand="" if brand_filter == "All brands" else brand_filter,
    manufacturer="" if mfg_filter == "All manufacturers" else mfg_filter,
)

st.caption(f"Showing {len(filtered):,} of {len(df):,} cars")

if filtered.empty:
    st.info("No car matches these filters.")
    st.stop()

display = filtered.copy()
display.insert(0, "delete", False)
display["photo"] = display["photo_url"].apply(lambda u: photo_preview_url(u) or None)

edited = st.data_editor(
    display[["delete", "photo"] + CAR_COLUMNS],
    use_container_width=True,
    hide_index=True,
    num_rows="fixed",
    disabled=["photo", "car_id", "photo_url"],
    column_config={
        "delete": st.column_config.CheckboxColumn("Delete", help="Check to delete this car"),
        "photo": st.column_config.ImageColumn("Photo", width="small"),
        "photo_url": st.column_config.LinkColumn("Photo link"),
        "car_id": st.column_config.TextColumn("ID"),
    },
    key="collection_editor",
)

c1, c2, c3 = st.columns([1, 1, 2])
with c1:
    apply_btn = st.button("Apply changes", type="primary", use_container_width=True)
with c2:
    st.download_button(
        "Download filtered CSV",
        data=export_csv(filtered).encode("utf-8"),
        file_name="collection_filtered.csv",
        mime="text/csv",
        use_container_width=True,
    )
with c3:
    labels = {r["car_id"]: car_label(r) for r in filtered.to_dict(orient="records")}
    pick = st.selectbox("Open in form", [""] + list(labels), format_func=lambda k: labels.get(k, "Choose a car…"))
    if pick:
        st.session_state[EDIT_KEY] = pick
        st.switch_page("pages/3_Add_Car.py")

if apply_btn:
    s = store()
    changed = changed_records(filtered, edited)
    delete_ids = edited.loc[edited["delete"] == True, "car_id"].astype(str).tolist()  # noqa: E712

    records = None
    for rec in changed:
        if rec["car_id"] in delete_ids:
            continue
        records = s.save(rec)
    for car_id in delete_ids:
        records = s.delete(car_id)

    if records is not None:
        set_collection(records)

    if delete_ids:
        st.toast(f"Deleted {len(delete_ids)} car(s).")
    if changed:
        st.toast(f"Saved {len(changed)} change(s).")
    if not changed and not delete_ids:
        st.toast("Nothing to save.")
    # edits are baked into the collection now; start the editor clean
    st.session_state.pop("collection_editor", None)
    st.rerun()
