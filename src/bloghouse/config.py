"""
Configuration management for bloghouse.

Handles:
- Home directory detection (BLOGHOUSE_HOME override)
- Config file loading from ~/.bloghouse/config.yaml
- Environment variable reading for the API URL and token
"""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field


class ServerConfig(BaseModel):
    """Backend endpoints."""
    api_url: str = "http://localhost:3001"
    socket_url: Optional[str] = None
    request_timeout: float = Field(default=30.0, gt=0)

    @property
    def api_origin(self) -> str:
        """API URL without a trailing /api; request paths carry their own /api prefix."""
        url = self.api_url.rstrip("/")
        if url.endswith("/api"):
            url = url[: -len("/api")]
        return url

    @property
    def resolved_socket_url(self) -> str:
        """Socket URL, derived from the API URL when not set."""
        return self.socket_url or self.api_origin


class AuthConfig(BaseModel):
    """Where the access token is persisted."""
    cookie_file: Optional[str] = None
    token_file: Optional[str] = None


class ProvisioningConfig(BaseModel):
    """Defaults for the provisioning flows."""
    default_port: int = 22
    default_username: str = "root"
    vps_auto_close_delay: float = Field(default=2.0, ge=0)
    blog_auto_close_delay: float = Field(default=3.0, ge=0)


class DashboardConfig(BaseModel):
    """Local browser dashboard mirroring a provisioning session."""
    enabled: bool = False
    host: str = "127.0.0.1"
    port: int = 8765
    auto_open_browser: bool = True
    shutdown_delay: float = 5.0


class Config(BaseModel):
    """Main configuration model."""
    locale: str = "pt-BR"
    server: ServerConfig = Field(default_factory=ServerConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    provisioning: ProvisioningConfig = Field(default_factory=ProvisioningConfig)
    dashboard: DashboardConfig = Field(default_factory=DashboardConfig)


class ConfigManager:
    """Manages configuration loading and access."""

    def __init__(self, home: Optional[Path] = None):
        self._config: Optional[Config] = None
        self._home: Optional[Path] = home

    @property
    def home(self) -> Path:
        """Get the bloghouse home directory."""
        if self._home is None:
            self._home = detect_home_path()
        return self._home

    @property
    def config_path(self) -> Path:
        """Get the config file path."""
        return self.home / "config.yaml"

    @property
    def cookie_path(self) -> Path:
        config = self.load()
        if config.auth.cookie_file:
            return Path(config.auth.cookie_file).expanduser()
        return self.home / "cookies.txt"

    @property
    def token_path(self) -> Path:
        config = self.load()
        if config.auth.token_file:
            return Path(config.auth.token_file).expanduser()
        return self.home / "token.json"

    def load(self) -> Config:
        """Load configuration from file, or return defaults."""
        if self._config is not None:
            return self._config

        if self.config_path.exists():
            with open(self.config_path, 'r') as f:
                data = yaml.safe_load(f) or {}
            config = Config(**data)
        else:
            config = Config()

        self._config = apply_env_overrides(config)
        return self._config

    def save(self, config: Config) -> None:
        """Save configuration to file."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.config_path, 'w') as f:
            yaml.dump(config.model_dump(), f, default_flow_style=False, sort_keys=False)

        self._config = config

    @property
    def config(self) -> Config:
        """Get the current configuration (loads if needed)."""
        return self.load()


def detect_home_path() -> Path:
    """
    Detect the bloghouse home directory.

    Checks BLOGHOUSE_HOME first, then falls back to ~/.bloghouse.
    The directory is not created here.
    """
    env_path = os.environ.get("BLOGHOUSE_HOME")
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / ".bloghouse"


def apply_env_overrides(config: Config) -> Config:
    """Return a copy of config with environment overrides applied."""
    server_updates = {}
    api_url = get_env_var("BLOGHOUSE_API_URL")
    if api_url:
        server_updates["api_url"] = api_url
    socket_url = get_env_var("BLOGHOUSE_SOCKET_URL")
    if socket_url:
        server_updates["socket_url"] = socket_url

    updates = {}
    if server_updates:
        updates["server"] = config.server.model_copy(update=server_updates)
    locale = get_env_var("BLOGHOUSE_LOCALE")
    if locale:
        updates["locale"] = locale

    if not updates:
        return config
    return config.model_copy(update=updates)


def get_env_var(name: str, required: bool = False) -> Optional[str]:
    """Get an environment variable, optionally raising if missing."""
    value = os.environ.get(name)
    if required and not value:
        raise ValueError(f"Required environment variable {name} is not set")
    return value


def get_env_token() -> Optional[str]:
    """Get an access token from the environment (optional)."""
    return get_env_var("BLOGHOUSE_TOKEN")


# Global config manager instance
config_manager = ConfigManager()
