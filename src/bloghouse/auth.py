"""
Access token resolution and the session context.

The token is looked up in this order:
1. BLOGHOUSE_TOKEN environment variable
2. The `access_token` cookie in a Netscape-format cookie jar
3. The local token store (token.json)
"""

import json
import logging
from http.cookiejar import LoadError, MozillaCookieJar
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict

from bloghouse.config import ConfigManager, config_manager, get_env_token

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "access_token"


class AuthError(Exception):
    """Raised when an operation needs a token and none is available."""
    pass


class SessionContext(BaseModel):
    """The authenticated user, passed explicitly to clients and flows."""
    model_config = ConfigDict(frozen=True)

    token: Optional[str] = None
    user_id: Optional[str] = None
    user_email: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def require_token(self) -> str:
        if not self.token:
            raise AuthError("No access token available. Run `bloghouse login` first.")
        return self.token

    def authorization_header(self) -> dict[str, str]:
        """Authorization header for REST calls (empty when anonymous)."""
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}


class TokenStore:
    """Persisted token, the local counterpart of the browser's key-value store."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def get(self) -> Optional[str]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read token store {self.path}: {e}")
            return None
        token = data.get("token") if isinstance(data, dict) else None
        return token or None

    def set(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"token": token}), encoding="utf-8")
        try:
            self.path.chmod(0o600)
        except OSError:
            logger.debug(f"Could not restrict permissions on {self.path}")

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()


def read_cookie_token(cookie_file: Path, name: str = ACCESS_TOKEN_COOKIE) -> Optional[str]:
    """Read a cookie value from a Netscape cookie jar, or None."""
    cookie_file = Path(cookie_file)
    if not cookie_file.exists():
        return None

    jar = MozillaCookieJar(str(cookie_file))
    try:
        jar.load(ignore_discard=True, ignore_expires=False)
    except (LoadError, OSError) as e:
        logger.warning(f"Could not load cookie jar {cookie_file}: {e}")
        return None

    for cookie in jar:
        if cookie.name == name and cookie.value:
            return cookie.value
    return None


def resolve_access_token(manager: Optional[ConfigManager] = None) -> Optional[str]:
    """Resolve the bearer token at call time (env, then cookie, then store)."""
    manager = manager or config_manager

    token = get_env_token()
    if token:
        logger.debug("Using access token from environment")
        return token

    token = read_cookie_token(manager.cookie_path)
    if token:
        logger.debug("Using access token from cookie jar")
        return token

    token = TokenStore(manager.token_path).get()
    if token:
        logger.debug("Using access token from local token store")
    return token


def load_session_context(
    manager: Optional[ConfigManager] = None,
    user_id: Optional[str] = None,
    user_email: Optional[str] = None,
) -> SessionContext:
    """Build a SessionContext from the currently resolvable token."""
    return SessionContext(
        token=resolve_access_token(manager),
        user_id=user_id,
        user_email=user_email,
    )
