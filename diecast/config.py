"""Settings read from Streamlit secrets.

Expected ``.streamlit/secrets.toml`` layout::

    sync_url = "https://script.google.com/macros/s/.../exec"   # Apps Script endpoint
    spreadsheet_id = "..."                                      # or direct Sheets access
    collection_worksheet = "collection"
    service_account_json_path = "secrets/gcp_service_account.json"
    gemini_api_key = "..."
    gemini_model = "gemini-3-flash-preview"
    cache_path = ".cache/collection.json"

    [auth]
    email = "me@example.com"
    password = "..."
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from diecast.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_WORKSHEET = "collection"
DEFAULT_MODEL = "gemini-3-flash-preview"
DEFAULT_CACHE_PATH = ".cache/collection.json"


@dataclass(frozen=True)
class Settings:
    sync_url: str = ""
    spreadsheet_id: str = ""
    collection_worksheet: str = DEFAULT_WORKSHEET
    gemini_api_key: str = ""
    gemini_model: str = DEFAULT_MODEL
    cache_path: Path = Path(DEFAULT_CACHE_PATH)
    auth_email: str = ""
    auth_password: str = ""

    @property
    def remote_kind(self) -> str:
        """``apps_script``, ``sheets`` or ``none`` (cache only)."""
        if self.sync_url:
            return "apps_script"
        if self.spreadsheet_id:
            return "sheets"
        return "none"


def _secrets_dict(secrets) -> dict:
    if secrets is not None:
        return {k: secrets[k] for k in secrets.keys()}

    import streamlit as st
    from streamlit.errors import StreamlitAPIException

    try:
        return {k: st.secrets[k] for k in st.secrets.keys()}
    except (FileNotFoundError, StreamlitAPIException):
        # st.secrets raises when no secrets.toml exists at all
        logger.warning("No Streamlit secrets file found; running with defaults")
        return {}


def _text(value) -> str:
    return "" if value is None else str(value).strip()


def load_settings(secrets: Mapping[str, Any] | None = None) -> Settings:
    data = _secrets_dict(secrets)
    auth = data.get("auth") or {}

    cache_path = Path(_text(data.get("cache_path")) or DEFAULT_CACHE_PATH)
    if not cache_path.is_absolute():
        cache_path = Path.cwd() / cache_path

    return Settings(
        sync_url=_text(data.get("sync_url")),
        spreadsheet_id=_text(data.get("spreadsheet_id")),
        collection_worksheet=_text(data.get("collection_worksheet")) or DEFAULT_WORKSHEET,
        gemini_api_key=(
            _text(data.get("gemini_api_key"))
            or os.environ.get("GEMINI_API_KEY", "")
            or os.environ.get("GOOGLE_API_KEY", "")
        ),
        gemini_model=_text(data.get("gemini_model")) or DEFAULT_MODEL,
        cache_path=cache_path,
        auth_email=_text(auth.get("email")).lower(),
        auth_password=_text(auth.get("password")),
    )


def service_account_info(secrets: Mapping[str, Any] | None = None) -> dict:
    """
    Service account credentials for gspread, from any of:
      gcp_service_account   TOML table (Streamlit Cloud)
      gcp_service_account   JSON string (Streamlit Cloud)
      service_account_json_path   local file, relative to the working directory
    """
    data = _secrets_dict(secrets)

    sa = data.get("gcp_service_account")
    if sa is not None and not isinstance(sa, str):
        return {k: sa[k] for k in sa.keys()}
    if isinstance(sa, str):
        return json.loads(sa)

    if "service_account_json_path" in data:
        p = Path(data["service_account_json_path"])
        if not p.is_absolute():
            p = Path.cwd() / p
        if not p.exists():
            raise ConfigError(f"Service account JSON not found at: {p}")
        return json.loads(p.read_text(encoding="utf-8"))

    raise ConfigError('Missing secrets: add "gcp_service_account" (Cloud) or "service_account_json_path" (local).')
