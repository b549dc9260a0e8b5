"""Configuration loading and validation."""
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration is invalid."""

    pass


PROVIDER_KINDS = ("auto", "openrouter", "gemini")
STORE_BACKENDS = ("file", "duckdb", "memory")


@dataclass
class ProviderConfig:
    """Market data provider configuration."""

    api_key: str = ""
    kind: str = "auto"
    openrouter_model: str = "perplexity/llama-3.1-sonar-large-128k-online"
    gemini_model: str = "gemini-3-flash-preview"
    timeout_seconds: float = 120.0
    referer: str = "https://nepal-ipo-radar.vercel.app"


@dataclass
class DataStoreConfig:
    """Data store configuration."""

    backend: str
    path: str


@dataclass
class NotifierConfig:
    """Email alert configuration."""

    enabled: bool = True
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465
    username: str = ""
    password: str = ""
    recipient: str = ""
    sender_name: str = "Nepal IPO Radar"
    include_subscribers: bool = False

    @property
    def has_credentials(self) -> bool:
        return bool(self.username and self.password)


@dataclass
class ScannerConfig:
    """Scan scheduling configuration."""

    scan_interval_hours: float = 6.0
    bootstrap_when_empty: bool = True


@dataclass
class Config:
    """Main configuration container."""

    provider: ProviderConfig
    data_store: DataStoreConfig
    notifier: NotifierConfig = field(default_factory=NotifierConfig)
    scanner: ScannerConfig = field(default_factory=ScannerConfig)


def _from_env(value: str | None, env_name: str) -> str:
    """Use the YAML value, or the environment variable when it is blank."""
    if value:
        return str(value)
    return os.environ.get(env_name, "")


def _number(section: dict, section_name: str, key: str, default, cast):
    """Read a numeric setting, raising ConfigError for non-numeric values."""
    value = section.get(key, default)
    try:
        return cast(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{section_name}.{key} must be a number, got {value!r}") from e


def load_config(path: str) -> Config:
    """Load configuration from YAML file.

    Secrets left blank in the file are read from the environment
    (API_KEY, GMAIL_USER, GMAIL_APP_PASSWORD, ALERT_RECIPIENT_EMAIL).

    Args:
        path: Path to YAML configuration file

    Returns:
        Config object with validated configuration

    Raises:
        ConfigError: If file not found, invalid YAML, or missing required fields
    """
    config_path = Path(path)

    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        with open(config_path) as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML: {e}") from e

    if raw is None:
        raise ConfigError("Configuration file is empty")

    # Validate required sections
    required_sections = ["provider", "data_store"]
    for section in required_sections:
        if section not in raw:
            raise ConfigError(f"Missing required configuration section: {section}")

    # Parse provider config
    prov_raw = raw["provider"] or {}
    provider = ProviderConfig(
        api_key=_from_env(prov_raw.get("api_key"), "API_KEY"),
        kind=prov_raw.get("kind", "auto"),
        openrouter_model=prov_raw.get("openrouter_model", ProviderConfig.openrouter_model),
        gemini_model=prov_raw.get("gemini_model", ProviderConfig.gemini_model),
        timeout_seconds=_number(prov_raw, "provider", "timeout_seconds", 120.0, float),
        referer=prov_raw.get("referer", ProviderConfig.referer),
    )
    if provider.kind not in PROVIDER_KINDS:
        raise ConfigError(f"Unknown provider kind: {provider.kind} (expected one of {PROVIDER_KINDS})")
    if provider.timeout_seconds <= 0:
        raise ConfigError("provider.timeout_seconds must be positive")

    # Parse data store config
    ds_raw = raw["data_store"] or {}
    data_store = DataStoreConfig(
        backend=ds_raw.get("backend", "file"),
        path=ds_raw.get("path", "./data"),
    )
    if data_store.backend not in STORE_BACKENDS:
        raise ConfigError(f"Unknown data store backend: {data_store.backend} (expected one of {STORE_BACKENDS})")

    # Parse notifier config
    notif_raw = raw.get("notifier") or {}
    notifier = NotifierConfig(
        enabled=notif_raw.get("enabled", True),
        smtp_host=notif_raw.get("smtp_host", "smtp.gmail.com"),
        smtp_port=_number(notif_raw, "notifier", "smtp_port", 465, int),
        username=_from_env(notif_raw.get("username"), "GMAIL_USER"),
        password=_from_env(notif_raw.get("password"), "GMAIL_APP_PASSWORD"),
        recipient=_from_env(notif_raw.get("recipient"), "ALERT_RECIPIENT_EMAIL"),
        sender_name=notif_raw.get("sender_name", "Nepal IPO Radar"),
        include_subscribers=notif_raw.get("include_subscribers", False),
    )

    # Parse scanner config
    scan_raw = raw.get("scanner") or {}
    scanner = ScannerConfig(
        scan_interval_hours=_number(scan_raw, "scanner", "scan_interval_hours", 6.0, float),
        bootstrap_when_empty=scan_raw.get("bootstrap_when_empty", True),
    )

    config = Config(
        provider=provider,
        data_store=data_store,
        notifier=notifier,
        scanner=scanner,
    )

    logger.info(f"Loaded configuration from {path}")
    logger.debug(f"Provider: kind={provider.kind}, key_set={bool(provider.api_key)}")
    logger.debug(f"Data store: {data_store.backend} at {data_store.path}")
    logger.debug(f"Notifier: enabled={notifier.enabled}, credentials={notifier.has_credentials}")

    return config
