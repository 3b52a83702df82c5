"""Tests for token resolution and the session context."""

import pytest

from bloghouse.auth import (
    AuthError,
    SessionContext,
    TokenStore,
    load_session_context,
    read_cookie_token,
    resolve_access_token,
)
from bloghouse.config import ConfigManager


def write_cookie_jar(path, value, name="access_token"):
    path.write_text(
        "# Netscape HTTP Cookie File\n"
        f"localhost\tFALSE\t/\tFALSE\t4102444800\t{name}\t{value}\n"
    )


class TestSessionContext:
    """Tests for SessionContext."""

    def test_authorization_header(self):
        session = SessionContext(token="abc")
        assert session.is_authenticated
        assert session.authorization_header() == {"Authorization": "Bearer abc"}

    def test_anonymous(self):
        session = SessionContext()
        assert not session.is_authenticated
        assert session.authorization_header() == {}
        with pytest.raises(AuthError):
            session.require_token()

    def test_frozen(self):
        session = SessionContext(token="abc")
        with pytest.raises(ValueError):
            session.token = "other"


class TestTokenStore:
    """Tests for the local token store."""

    def test_set_get_clear(self, tmp_path):
        store = TokenStore(tmp_path / "sub" / "token.json")
        assert store.get() is None
        store.set("tok")
        assert store.get() == "tok"
        store.clear()
        assert store.get() is None

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "token.json"
        path.write_text("{not json")
        assert TokenStore(path).get() is None


class TestCookieToken:
    """Tests for reading the access_token cookie."""

    def test_reads_cookie(self, tmp_path):
        jar = tmp_path / "cookies.txt"
        write_cookie_jar(jar, "from-cookie")
        assert read_cookie_token(jar) == "from-cookie"

    def test_missing_file(self, tmp_path):
        assert read_cookie_token(tmp_path / "none.txt") is None

    def test_other_cookie_only(self, tmp_path):
        jar = tmp_path / "cookies.txt"
        write_cookie_jar(jar, "x", name="session")
        assert read_cookie_token(jar) is None


class TestResolveAccessToken:
    """Token lookup order: env, cookie, token store."""

    def test_env_first(self, tmp_path, monkeypatch):
        monkeypatch.setenv("BLOGHOUSE_TOKEN", "from-env")
        manager = ConfigManager(home=tmp_path)
        write_cookie_jar(manager.cookie_path, "from-cookie")
        assert resolve_access_token(manager) == "from-env"

    def test_cookie_before_store(self, tmp_path, monkeypatch):
        monkeypatch.delenv("BLOGHOUSE_TOKEN", raising=False)
        manager = ConfigManager(home=tmp_path)
        write_cookie_jar(manager.cookie_path, "from-cookie")
        TokenStore(manager.token_path).set("from-store")
        assert resolve_access_token(manager) == "from-cookie"

    def test_store_last(self, tmp_path, monkeypatch):
        monkeypatch.delenv("BLOGHOUSE_TOKEN", raising=False)
        manager = ConfigManager(home=tmp_path)
        TokenStore(manager.token_path).set("from-store")
        assert resolve_access_token(manager) == "from-store"

    def test_nothing_found(self, tmp_path, monkeypatch):
        monkeypatch.delenv("BLOGHOUSE_TOKEN", raising=False)
        session = load_session_context(ConfigManager(home=tmp_path), user_email="a@b.c")
        assert session.token is None
        assert session.user_email == "a@b.c"
