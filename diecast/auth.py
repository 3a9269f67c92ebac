import hmac

import streamlit as st

AUTH_KEY = "diecast_auth"
PROFILE_KEY = "diecast_profile"

AVATAR_URL = "https://api.dicebear.com/7.x/avataaars/svg?seed={seed}&backgroundColor=b6e3f4"


def check_credentials(email: str, password: str, settings) -> bool:
    if not settings.auth_email or not settings.auth_password:
        return False
    email_ok = hmac.compare_digest((email or "").strip().lower().encode(), settings.auth_email.encode())
    pass_ok = hmac.compare_digest((password or "").encode(), settings.auth_password.encode())
    return email_ok and pass_ok


def make_profile(email: str) -> dict:
    name = email.split("@")[0].split(".")[0].title() if email else "Collector"
    return {"name": name, "email": email, "picture": AVATAR_URL.format(seed=name)}


def login(email: str, password: str, settings) -> bool:
    if not check_credentials(email, password, settings):
        return False
    st.session_state[AUTH_KEY] = True
    st.session_state[PROFILE_KEY] = make_profile(settings.auth_email)
    return True


def logout():
    for k in [AUTH_KEY, PROFILE_KEY]:
        st.session_state.pop(k, None)


def is_authenticated() -> bool:
    return bool(st.session_state.get(AUTH_KEY))


def current_profile() -> dict:
    return st.session_state.get(PROFILE_KEY) or {}


def require_login():
    """Stop the page for anonymous sessions, pointing back at the login page."""
    if is_authenticated():
        return
    st.warning("Please sign in on the Home page first.")
    st.page_link("home.py", label="Go to login", icon="🔐")
    st.stop()
