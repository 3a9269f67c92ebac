from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from diecast import auth
from diecast.config import Settings


@pytest.fixture
def session(monkeypatch):
    fake_st = SimpleNamespace(session_state={})
    monkeypatch.setattr(auth, "st", fake_st)
    return fake_st.session_state


def test_check_credentials(settings):
    assert auth.check_credentials("collector@example.com", "s3cret!", settings)
    assert auth.check_credentials("  Collector@Example.COM", "s3cret!", settings)
    assert not auth.check_credentials("collector@example.com", "S3cret!", settings)
    assert not auth.check_credentials("someone@example.com", "s3cret!", settings)
    assert not auth.check_credentials("", "", settings)


def test_no_configured_user_rejects_everyone():
    assert not auth.check_credentials("", "", Settings())


def test_make_profile():
    profile = auth.make_profile("leo.santos@example.com")
    assert profile["name"] == "Leo"
    assert profile["email"] == "leo.santos@example.com"
    assert "seed=Leo" in profile["picture"]


def test_login_and_logout(session, settings):
    assert not auth.login("collector@example.com", "wrong", settings)
    assert not auth.is_authenticated()

    assert auth.login("collector@example.com", "s3cret!", settings)
    assert auth.is_authenticated()
    assert auth.current_profile()["email"] == "collector@example.com"

    auth.logout()
    assert not auth.is_authenticated()
    assert auth.current_profile() == {}


def test_require_login_stops_anonymous_sessions(monkeypatch):
    fake_st = SimpleNamespace(session_state={}, warning=MagicMock(), page_link=MagicMock(), stop=MagicMock())
    monkeypatch.setattr(auth, "st", fake_st)

    auth.require_login()
    fake_st.stop.assert_called_once()
    fake_st.page_link.assert_called_once()

    fake_st.stop.reset_mock()
    fake_st.session_state[auth.AUTH_KEY] = True
    auth.require_login()
    fake_st.stop.assert_not_called()
