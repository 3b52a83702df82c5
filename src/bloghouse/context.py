"""
Application context shared by resource operations and flows.
"""

from typing import Any, Optional

from bloghouse.api import ApiClient
from bloghouse.auth import SessionContext, load_session_context
from bloghouse.cache import QueryCache
from bloghouse.config import ConfigManager, config_manager
from bloghouse.messages import DEFAULT_LOCALE, translate
from bloghouse.notifier import Notifier


class AppContext:
    """API client + query cache + notifier for one authenticated session."""

    def __init__(
        self,
        api: ApiClient,
        cache: Optional[QueryCache] = None,
        notifier: Optional[Notifier] = None,
        locale: str = DEFAULT_LOCALE,
    ):
        self.api = api
        self.cache = cache or QueryCache()
        self.notifier = notifier or Notifier()
        self.locale = locale

    @property
    def session(self) -> SessionContext:
        return self.api.session

    def t(self, key: str, **params: Any) -> str:
        return translate(key, self.locale, **params)

    @classmethod
    def from_config(
        cls,
        manager: Optional[ConfigManager] = None,
        session: Optional[SessionContext] = None,
    ) -> "AppContext":
        manager = manager or config_manager
        config = manager.load()
        session = session or load_session_context(manager)
        api = ApiClient(
            config.server.api_origin,
            session,
            timeout=config.server.request_timeout,
        )
        return cls(api, locale=config.locale)

    async def aclose(self):
        await self.api.aclose()

    async def __aenter__(self) -> "AppContext":
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()
