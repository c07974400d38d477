"""
Runtime configuration for the quote scraper.

Settings are read once at startup from ``config/settings.yaml`` (the section
for ``APP_ENV`` is merged over the defaults), overlaid with environment
variables, validated, and handed to every component as an ``AppConfig``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union
from urllib.parse import quote_plus

import yaml

from quote_scraper.core.errors import ConfigError

DEFAULT_SETTINGS_PATH = Path(__file__).resolve().parent.parent / "config" / "settings.yaml"
DEFAULT_ENV = "dev"

# Logical collection keys; the settings file maps each to a real collection name
ASSETS_COLLECTION = "assets"
ASSET_PRICES_COLLECTION = "asset_prices"
SCRAPE_CHECKPOINT_COLLECTION = "scrape_checkpoint"
REQUIRED_COLLECTIONS = (ASSETS_COLLECTION, ASSET_PRICES_COLLECTION, SCRAPE_CHECKPOINT_COLLECTION)

MONGO_URI_ENV_VARS = ("MONGO_URI", "MONGODB_URI", "MONGODB_URL")


class Config:
    """Raw YAML settings loader."""

    _config: Optional[Dict[str, Any]] = None
    _path: Optional[Path] = None

    @classmethod
    def load(cls, path: Union[str, Path, None] = None) -> Dict[str, Any]:
        target = Path(path) if path is not None else DEFAULT_SETTINGS_PATH
        if cls._config is None or cls._path != target:
            try:
                with open(target, "r", encoding="utf-8") as f:
                    cls._config = yaml.safe_load(f) or {}
            except FileNotFoundError as exc:
                raise ConfigError(f"Settings file not found: {target}", key=str(target)) from exc
            except yaml.YAMLError as exc:
                raise ConfigError(f"Settings file is not valid YAML: {target}", key=str(target)) from exc
            cls._path = target
        return cls._config

    @classmethod
    def reset(cls) -> None:
        cls._config = None
        cls._path = None


def _deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _env_int(env: Mapping[str, str], name: str, fallback: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return fallback
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}", key=name, section="env") from exc


def _env_float(env: Mapping[str, str], name: str, fallback: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return fallback
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}", key=name, section="env") from exc


@dataclass(slots=True)
class MongoConfig:
    uri: Optional[str] = None
    host: Optional[str] = None
    username: str = ""
    password: str = ""
    dbname: str = "quotes_dev"
    schema_version: str = "1"
    timeout_seconds: float = 360.0
    min_pool_size: int = 0
    max_pool_size: int = 0
    max_idle_time_ms: int = 0
    collections: Dict[str, str] = field(default_factory=dict)

    def connection_uri(self) -> str:
        """Explicit URI wins; otherwise build an SRV string from host and credentials."""
        if self.uri:
            return self.uri
        if not self.host:
            raise ConfigError(
                "MongoDB connection string is required (MONGO_URI or mongo.host)",
                key="host",
                section="mongo",
            )
        if self.username:
            credentials = f"{quote_plus(self.username)}:{quote_plus(self.password)}@"
        else:
            credentials = ""
        return f"mongodb+srv://{credentials}{self.host}"

    def collection_name(self, key: str) -> str:
        name = self.collections.get(key)
        if not name:
            raise ConfigError(f"Cannot find collection name for '{key}'", key=key, section="mongo.collections")
        return name

    def client_options(self) -> Dict[str, Any]:
        """Pool options passed to the Mongo client; unset (<= 0) values are omitted."""
        options: Dict[str, Any] = {}
        if self.min_pool_size > 0:
            options["minPoolSize"] = self.min_pool_size
        if self.max_pool_size > 0:
            options["maxPoolSize"] = self.max_pool_size
        if self.max_idle_time_ms > 0:
            options["maxIdleTimeMS"] = self.max_idle_time_ms
        return options


@dataclass(slots=True)
class ScraperConfig:
    page_size: int = 50
    allowed_domains: List[str] = field(default_factory=lambda: ["finance.yahoo.com"])
    domain_glob: str = "*finance.yahoo.*"
    parallelism: int = 2
    random_delay_seconds: float = 2.0
    timeout_seconds: float = 30.0
    max_retries: int = 1
    quote_url_template: str = "https://finance.yahoo.com/quote/{ticker}?p={ticker}"
    price_selector: str = 'div#quote-header-info span[data-reactid="32"]'
    source: str = "yahoo"


@dataclass(slots=True)
class SchedulerConfig:
    interval_minutes: int = 15
    timezone: str = "UTC"
    run_on_start: bool = True


@dataclass(slots=True)
class AppConfig:
    env: str = DEFAULT_ENV
    mongo: MongoConfig = field(default_factory=MongoConfig)
    scraper: ScraperConfig = field(default_factory=ScraperConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    logging: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_settings(
        cls,
        settings: Mapping[str, Any],
        *,
        env_name: str = DEFAULT_ENV,
        env: Optional[Mapping[str, str]] = None,
    ) -> "AppConfig":
        env = os.environ if env is None else env

        environments = settings.get("environments") or {}
        if env_name not in environments and environments:
            raise ConfigError(f"Unknown environment '{env_name}'", key=env_name, section="environments")
        merged = _deep_merge(
            {k: v for k, v in settings.items() if k != "environments"},
            environments.get(env_name) or {},
        )

        mongo_raw = merged.get("mongo") or {}
        scraper_raw = merged.get("scraper") or {}
        scheduler_raw = merged.get("scheduler") or {}
        logging_raw = dict(merged.get("logging") or {})

        uri = next((env[name] for name in MONGO_URI_ENV_VARS if env.get(name)), None)

        mongo = MongoConfig(
            uri=uri or mongo_raw.get("uri"),
            host=mongo_raw.get("host"),
            username=env.get("MONGO_USERNAME") or mongo_raw.get("username") or "",
            password=env.get("MONGO_PASSWORD") or mongo_raw.get("password") or "",
            dbname=env.get("MONGO_DB_NAME") or mongo_raw.get("dbname", "quotes_dev"),
            schema_version=str(mongo_raw.get("schema_version", "1")),
            timeout_seconds=float(mongo_raw.get("timeout_seconds", 360.0)),
            min_pool_size=int(mongo_raw.get("min_pool_size", 0)),
            max_pool_size=int(mongo_raw.get("max_pool_size", 0)),
            max_idle_time_ms=int(mongo_raw.get("max_idle_time_ms", 0)),
            collections=dict(mongo_raw.get("collections") or {}),
        )

        defaults = ScraperConfig()
        scraper = ScraperConfig(
            page_size=_env_int(env, "PAGE_SIZE", int(scraper_raw.get("page_size", defaults.page_size))),
            allowed_domains=list(scraper_raw.get("allowed_domains") or defaults.allowed_domains),
            domain_glob=scraper_raw.get("domain_glob", defaults.domain_glob),
            parallelism=_env_int(env, "SCRAPER_PARALLELISM", int(scraper_raw.get("parallelism", defaults.parallelism))),
            random_delay_seconds=float(scraper_raw.get("random_delay_seconds", defaults.random_delay_seconds)),
            timeout_seconds=_env_float(
                env, "SCRAPER_TIMEOUT_SECONDS", float(scraper_raw.get("timeout_seconds", defaults.timeout_seconds))
            ),
            max_retries=int(scraper_raw.get("max_retries", defaults.max_retries)),
            quote_url_template=scraper_raw.get("quote_url_template", defaults.quote_url_template),
            price_selector=scraper_raw.get("price_selector", defaults.price_selector),
            source=scraper_raw.get("source", defaults.source),
        )

        scheduler = SchedulerConfig(
            interval_minutes=int(scheduler_raw.get("interval_minutes", 15)),
            timezone=scheduler_raw.get("timezone", "UTC"),
            run_on_start=bool(scheduler_raw.get("run_on_start", True)),
        )

        if env.get("LOG_LEVEL"):
            logging_raw["level"] = env["LOG_LEVEL"]

        return cls(env=env_name, mongo=mongo, scraper=scraper, scheduler=scheduler, logging=logging_raw)

    def validate(self) -> "AppConfig":
        for key in REQUIRED_COLLECTIONS:
            self.mongo.collection_name(key)
        self.mongo.connection_uri()

        if self.scraper.page_size <= 0:
            raise ConfigError("page_size must be positive", key="page_size", section="scraper")
        if self.scraper.parallelism <= 0:
            raise ConfigError("parallelism must be positive", key="parallelism", section="scraper")
        if self.scraper.timeout_seconds <= 0:
            raise ConfigError("timeout_seconds must be positive", key="timeout_seconds", section="scraper")
        if self.scraper.max_retries < 1:
            raise ConfigError("max_retries must be at least 1", key="max_retries", section="scraper")
        if not self.scraper.allowed_domains:
            raise ConfigError("allowed_domains must not be empty", key="allowed_domains", section="scraper")
        if "{ticker}" not in self.scraper.quote_url_template:
            raise ConfigError(
                "quote_url_template must contain a {ticker} placeholder",
                key="quote_url_template",
                section="scraper",
            )
        if self.mongo.timeout_seconds <= 0:
            raise ConfigError("timeout_seconds must be positive", key="timeout_seconds", section="mongo")
        return self


def load_config(
    path: Union[str, Path, None] = None,
    *,
    env: Optional[Mapping[str, str]] = None,
) -> AppConfig:
    """Build and validate the application config. Call once at process start."""
    env = os.environ if env is None else env
    env_name = env.get("APP_ENV") or DEFAULT_ENV
    settings = Config.load(path)
    return AppConfig.from_settings(settings, env_name=env_name, env=env).validate()


__all__ = [
    "ASSETS_COLLECTION",
    "ASSET_PRICES_COLLECTION",
    "SCRAPE_CHECKPOINT_COLLECTION",
    "AppConfig",
    "Config",
    "MongoConfig",
    "ScraperConfig",
    "SchedulerConfig",
    "load_config",
]
