"""Configuration management for Doctree.

Supports TOML configuration format with auto-discovery.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, replace
from pathlib import Path

CONFIG_FILENAME = "doctree.toml"
DEFAULT_DATABASE_FILENAME = "doctree.db"


def sqlite_url(path: Path) -> str:
    """Build an async SQLite URL for a database file."""
    return f"sqlite+aiosqlite:///{path}"


@dataclass
class ServerConfig:
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 8080


@dataclass
class DatabaseConfig:
    """Database configuration."""

    url: str = sqlite_url(Path(DEFAULT_DATABASE_FILENAME))
    echo: bool = False
    isolation_level: str | None = None


@dataclass
class SiteConfig:
    """Site partition configuration."""

    default_id: str = "default"


@dataclass
class Config:
    """Application configuration."""

    server: ServerConfig
    database: DatabaseConfig
    site: SiteConfig
    config_path: Path | None = None

    @classmethod
    def load(cls, config_path: Path | None = None) -> Config:
        """Load configuration from file.

        If config_path is provided, loads from that file.
        Otherwise, searches for doctree.toml in current directory and parents.

        Args:
            config_path: Optional explicit path to config file

        Returns:
            Config instance with defaults for missing sections

        Raises:
            FileNotFoundError: If explicit config_path doesn't exist
            ValueError: If configuration is invalid
        """
        if config_path is not None:
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return cls._load_from_file(config_path)

        discovered_path = cls._discover_config()
        if discovered_path is None:
            return cls._default()

        return cls._load_from_file(discovered_path)

    @classmethod
    def _discover_config(cls) -> Path | None:
        """Search for config file in current directory and parents."""
        current = Path.cwd()
        while True:
            candidate = current / CONFIG_FILENAME
            if candidate.exists():
                return candidate
            parent = current.parent
            if parent == current:
                return None
            current = parent

    @classmethod
    def _default(cls) -> Config:
        return cls(
            server=ServerConfig(),
            database=DatabaseConfig(),
            site=SiteConfig(),
        )

    @classmethod
    def _load_from_file(cls, path: Path) -> Config:
        """Load configuration from a specific file.

        Args:
            path: Path to TOML configuration file

        Returns:
            Config instance

        Raises:
            ValueError: If configuration is invalid
        """
        with path.open("rb") as f:
            data = tomllib.load(f)

        if not isinstance(data, dict):
            raise ValueError("Configuration must be a dictionary")

        config_dir = path.parent

        return cls(
            server=cls._parse_server(data.get("server")),
            database=cls._parse_database(data.get("database"), config_dir),
            site=cls._parse_site(data.get("site")),
            config_path=path,
        )

    @classmethod
    def _parse_server(cls, data: object) -> ServerConfig:
        if data is None:
            return ServerConfig()

        if not isinstance(data, dict):
            raise ValueError("server section must be a dictionary")

        host = data.get("host", "127.0.0.1")
        if not isinstance(host, str):
            raise ValueError("server.host must be a string")

        port = data.get("port", 8080)
        if not isinstance(port, int):
            raise ValueError("server.port must be an integer")

        return ServerConfig(host=host, port=port)

    @classmethod
    def _parse_database(cls, data: object, config_dir: Path) -> DatabaseConfig:
        """Parse database configuration section.

        Without an explicit url, the SQLite file lives next to the config file.

        Args:
            data: Raw database section data
            config_dir: Directory containing config file (for the default database path)

        Returns:
            DatabaseConfig instance
        """
        default_url = sqlite_url(config_dir / DEFAULT_DATABASE_FILENAME)
        if data is None:
            return DatabaseConfig(url=default_url)

        if not isinstance(data, dict):
            raise ValueError("database section must be a dictionary")

        url = data.get("url", default_url)
        if not isinstance(url, str):
            raise ValueError("database.url must be a string")

        echo = data.get("echo", False)
        if not isinstance(echo, bool):
            raise ValueError("database.echo must be a boolean")

        isolation_level = data.get("isolation_level")
        if isolation_level is not None and not isinstance(isolation_level, str):
            raise ValueError("database.isolation_level must be a string")

        return DatabaseConfig(url=url, echo=echo, isolation_level=isolation_level)

    @classmethod
    def _parse_site(cls, data: object) -> SiteConfig:
        if data is None:
            return SiteConfig()

        if not isinstance(data, dict):
            raise ValueError("site section must be a dictionary")

        default_id = data.get("default_id", "default")
        if not isinstance(default_id, str) or not default_id:
            raise ValueError("site.default_id must be a non-empty string")

        return SiteConfig(default_id=default_id)

    def with_overrides(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        database_url: str | None = None,
        default_site_id: str | None = None,
    ) -> Config:
        """Create a new Config with CLI overrides applied.

        Only non-None values override the existing config. The original
        Config is not modified.

        Args:
            host: Override server.host
            port: Override server.port
            database_url: Override database.url
            default_site_id: Override site.default_id

        Returns:
            New Config instance with overrides applied
        """
        server = self.server
        if host is not None or port is not None:
            server = replace(
                self.server,
                host=host if host is not None else self.server.host,
                port=port if port is not None else self.server.port,
            )

        database = self.database
        if database_url is not None:
            database = replace(self.database, url=database_url)

        site = self.site
        if default_site_id is not None:
            site = replace(self.site, default_id=default_site_id)

        return replace(self, server=server, database=database, site=site)
