import logging

import pandas as pd
import streamlit as st

from diecast.auth import current_profile, logout
from diecast.config import load_settings, service_account_info
from diecast.errors import AnalysisError, CollectionError
from diecast.models import normalize_collection
from diecast.sheets import SheetsRemote
from diecast.storage import AppsScriptRemote, CollectionStore, LocalCache

logger = logging.getLogger(__name__)

COLLECTION_STATE_KEY = "collection_df_v1"
PREFILL_KEY = "prefill_details"
EDIT_KEY = "editing_car_id"
FAILED_ANALYSIS_KEY = "failed_analysis"


# =========================================================
# STORE
# =========================================================

def get_settings():
    return load_settings()


@st.cache_resource
def open_remote(_settings, cache_key: str):
    """
    cache_key pins the resource to the configured remote.
    Failures raise, so st.cache_resource keeps nothing and the next run retries.
    """
    kind = _settings.remote_kind
    if kind == "apps_script":
        return AppsScriptRemote(_settings.sync_url)
    if kind == "sheets":
        return SheetsRemote.from_settings(_settings, service_account_info())
    return None


def get_store(settings, cache_key: str) -> CollectionStore:
    try:
        remote = open_remote(settings, cache_key)
    except CollectionError as e:
        logger.error("Google Sheets unavailable, using local cache only: %s", e)
        st.error(f"Failed to initialize Google Sheets client: {e}")
        remote = None
    return CollectionStore(remote, LocalCache(settings.cache_path))


def store() -> CollectionStore:
    settings = get_settings()
    key = f"{settings.remote_kind}|{settings.sync_url or settings.spreadsheet_id}|{settings.cache_path}"
    return get_store(settings, key)


# =========================================================
# SESSION STATE
# =========================================================

def set_collection(records) -> pd.DataFrame:
    df = normalize_collection(records)
    st.session_state[COLLECTION_STATE_KEY] = df
    return df


def init_collection() -> pd.DataFrame:
    if COLLECTION_STATE_KEY not in st.session_state:
        with st.spinner("Loading collection..."):
            set_collection(store().load())
    return st.session_state[COLLECTION_STATE_KEY]


def refresh_collection() -> pd.DataFrame:
    with st.spinner("Reloading from the sheet..."):
        return set_collection(store().load())


def collection() -> pd.DataFrame:
    return init_collection().copy()


def analyze_once(file_id: str, analyze):
    """
    Run analyze() for an upload, remembering a failure so reruns with the
    same file re-raise the stored error instead of calling the model again.
    """
    failed = st.session_state.get(FAILED_ANALYSIS_KEY)
    if failed and failed[0] == file_id:
        raise AnalysisError(failed[1])
    try:
        return analyze()
    except AnalysisError as e:
        st.session_state[FAILED_ANALYSIS_KEY] = (file_id, str(e))
        raise


# =========================================================
# SIDEBAR
# =========================================================

def render_sidebar():
    profile = current_profile()
    s = store()
    with st.sidebar:
        if profile:
            c1, c2 = st.columns([1, 3])
            with c1:
                st.image(profile.get("picture", ""), width=40)
            with c2:
                st.markdown(f"**{profile.get('name', '')}**  \n{profile.get('email', '')}")

        st.caption("Sync: connected" if s.has_remote else "Sync: local cache only")

        if st.button("🔄 Refresh from sheet", use_container_width=True):
            refresh_collection()
            st.success("Reloaded.")

        if st.button("Log out", use_container_width=True):
            logout()
            st.session_state.pop(COLLECTION_STATE_KEY, None)
            st.switch_page("home.py")
