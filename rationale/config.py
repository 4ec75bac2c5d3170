"""
Configuration -- Centralized settings management

Config hierarchy (highest to lowest priority):
  1. Environment variables (RATIONALE_AGENT, RATIONALE_LOCK_TIMEOUT, RATIONALE_SYMBOLS)
  2. Project config (.rationale/config.yaml)
  3. User config (~/.rationale/config.yaml)
  4. Defaults

A Config value is built once per invocation and handed to the Repository.
Nothing reads configuration from global state after that.
"""

import logging
import os
import yaml
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Dict, Any


logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
DEFAULT_AGENT = "unknown"
DEFAULT_LOCK_TIMEOUT = 5.0

ENV_AGENT = "RATIONALE_AGENT"
ENV_LOCK_TIMEOUT = "RATIONALE_LOCK_TIMEOUT"
ENV_SYMBOLS = "RATIONALE_SYMBOLS"


@dataclass
class StoreConfig:
    """Record store settings."""
    default_agent: str = DEFAULT_AGENT
    schema_version: int = SCHEMA_VERSION

    def validate(self) -> Optional[str]:
        """Validate config. Returns error message or None if valid."""
        if not self.default_agent or not self.default_agent.strip():
            return "store.default_agent must not be empty"
        if self.schema_version != SCHEMA_VERSION:
            return f"Unsupported schema version {self.schema_version}. Supported: {SCHEMA_VERSION}"
        return None


@dataclass
class LockConfig:
    """Writer lock settings."""
    timeout: float = DEFAULT_LOCK_TIMEOUT  # seconds

    def validate(self) -> Optional[str]:
        """Validate config. Returns error message or None if valid."""
        if self.timeout < 0:
            return f"lock.timeout must be >= 0, got {self.timeout:g}"
        return None


@dataclass
class DisplayConfig:
    """Display preferences."""
    symbols: str = "auto"  # "unicode" | "ascii" | "auto"

    def validate(self) -> Optional[str]:
        """Validate config. Returns error message or None if valid."""
        valid_symbols = ("unicode", "ascii", "auto")
        if self.symbols not in valid_symbols:
            return f"Unknown symbols setting '{self.symbols}'. Valid: {', '.join(valid_symbols)}"
        return None


@dataclass
class Config:
    """Application configuration."""
    store: StoreConfig = field(default_factory=StoreConfig)
    lock: LockConfig = field(default_factory=LockConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "store": {
                "default_agent": self.store.default_agent,
                "schema_version": self.store.schema_version
            },
            "lock": {
                "timeout": self.lock.timeout
            },
            "display": {
                "symbols": self.display.symbols
            }
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """Create from dictionary."""
        store_data = data.get("store") or {}
        lock_data = data.get("lock") or {}
        display_data = data.get("display") or {}

        return cls(
            store=StoreConfig(
                default_agent=str(store_data.get("default_agent", DEFAULT_AGENT)),
                schema_version=int(store_data.get("schema_version", SCHEMA_VERSION))
            ),
            lock=LockConfig(
                timeout=float(lock_data.get("timeout", DEFAULT_LOCK_TIMEOUT))
            ),
            display=DisplayConfig(
                symbols=str(display_data.get("symbols", "auto"))
            )
        )

    def validate(self) -> Optional[str]:
        """First validation error across all sections, or None."""
        for section in (self.store, self.lock, self.display):
            error = section.validate()
            if error:
                return error
        return None


class ConfigManager:
    """
    Manages configuration loading and persistence.

    Hierarchy:
      1. Environment
      2. Project config (.rationale/config.yaml)
      3. User config (~/.rationale/config.yaml)
      4. Defaults
    """

    USER_CONFIG_DIR = Path.home() / ".rationale"
    USER_CONFIG_FILE = USER_CONFIG_DIR / "config.yaml"
    PROJECT_CONFIG_DIR = ".rationale"
    PROJECT_CONFIG_FILE = "config.yaml"

    def __init__(self, project_dir: Optional[Path] = None, environ: Optional[Dict[str, str]] = None):
        self.project_dir = Path(project_dir) if project_dir else Path.cwd()
        self.environ = os.environ if environ is None else environ
        self._config: Optional[Config] = None

    @property
    def project_config_path(self) -> Path:
        return self.project_dir / self.PROJECT_CONFIG_DIR / self.PROJECT_CONFIG_FILE

    @property
    def user_config_path(self) -> Path:
        return self.USER_CONFIG_FILE

    def load(self) -> Config:
        """Load configuration from all sources."""
        if self._config is not None:
            return self._config

        config_data: Dict[str, Any] = {}

        # Layer 1: User config
        config_data = self._merge(config_data, self._read_yaml(self.user_config_path))

        # Layer 2: Project config (higher priority)
        config_data = self._merge(config_data, self._read_yaml(self.project_config_path))

        # Layer 3: Environment overrides
        if self.environ.get(ENV_AGENT):
            config_data.setdefault("store", {})["default_agent"] = self.environ[ENV_AGENT]
        if self.environ.get(ENV_LOCK_TIMEOUT):
            config_data.setdefault("lock", {})["timeout"] = self.environ[ENV_LOCK_TIMEOUT]
        if self.environ.get(ENV_SYMBOLS):
            config_data.setdefault("display", {})["symbols"] = self.environ[ENV_SYMBOLS]

        try:
            config = Config.from_dict(config_data)
        except (TypeError, ValueError) as e:
            logger.warning("Ignoring invalid configuration values: %s", e)
            config = Config()

        error = config.validate()
        if error:
            logger.warning("Configuration problem, using defaults: %s", error)
            config = Config()

        self._config = config
        return self._config

    def _read_yaml(self, path: Path) -> Dict[str, Any]:
        """Read a config layer. Missing or malformed files contribute nothing."""
        if not path.exists():
            return {}
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Ignoring malformed config %s: %s", path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring config %s: top level is not a mapping", path)
            return {}
        return data

    def save_project(self, config: Config):
        """Save configuration to project config file."""
        self.project_config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.project_config_path, 'w') as f:
            yaml.safe_dump(config.to_dict(), f, default_flow_style=False)

        self._config = config

    def save_user(self, config: Config):
        """Save configuration to user config file."""
        self.USER_CONFIG_DIR.mkdir(parents=True, exist_ok=True)

        with open(self.user_config_path, 'w') as f:
            yaml.safe_dump(config.to_dict(), f, default_flow_style=False)

        self._config = config

    def set(self, key: str, value: str, scope: str = "project") -> Optional[str]:
        """
        Set a configuration value.

        Args:
            key: Dot-separated key (e.g., "store.default_agent")
            value: Value to set
            scope: "project" or "user"

        Returns:
            Error message or None if successful
        """
        config = self.load()

        parts = key.split(".")
        if len(parts) != 2:
            return f"Invalid key format: {key}. Use 'section.setting' (e.g., 'lock.timeout')"

        section, setting = parts

        if section == "store":
            if setting == "default_agent":
                config.store.default_agent = value
            elif setting == "schema_version":
                try:
                    config.store.schema_version = int(value)
                except ValueError:
                    return f"store.schema_version must be an integer, got '{value}'"
            else:
                return f"Unknown store setting: {setting}. Valid: default_agent, schema_version"
            error = config.store.validate()

        elif section == "lock":
            if setting == "timeout":
                try:
                    config.lock.timeout = float(value)
                except ValueError:
                    return f"lock.timeout must be a number, got '{value}'"
            else:
                return f"Unknown lock setting: {setting}. Valid: timeout"
            error = config.lock.validate()

        elif section == "display":
            if setting == "symbols":
                config.display.symbols = value
            else:
                return f"Unknown display setting: {setting}. Valid: symbols"
            error = config.display.validate()

        else:
            return f"Unknown section: {section}. Valid: store, lock, display"

        if error:
            # Drop the rejected value; next load() starts from disk again
            self._config = None
            return error

        if scope == "project":
            self.save_project(config)
        else:
            self.save_user(config)

        return None

    def get(self, key: str) -> Optional[str]:
        """Get a configuration value."""
        config = self.load()

        parts = key.split(".")
        if len(parts) != 2:
            return None

        section, setting = parts

        if section == "store":
            if setting == "default_agent":
                return config.store.default_agent
            elif setting == "schema_version":
                return str(config.store.schema_version)
        elif section == "lock":
            if setting == "timeout":
                return f"{config.lock.timeout:g}"
        elif section == "display":
            if setting == "symbols":
                return config.display.symbols

        return None

    def _merge(self, base: Dict, override: Dict) -> Dict:
        """Deep merge two dicts, override wins."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge(result[key], value)
            else:
                result[key] = value
        return result

    def display(self) -> str:
        """Format config for display."""
        config = self.load()

        lines = [
            "Configuration:",
            "",
            "Store:",
            f"  Default agent: {config.store.default_agent}",
            f"  Schema version: {config.store.schema_version}",
            "",
            "Lock:",
            f"  Timeout: {config.lock.timeout:g}s",
            "",
            "Display:",
            f"  Symbols: {config.display.symbols}",
            "",
            "Config files:",
            f"  User: {self.user_config_path} {'(exists)' if self.user_config_path.exists() else '(not found)'}",
            f"  Project: {self.project_config_path} {'(exists)' if self.project_config_path.exists() else '(not found)'}",
            "",
            f"Environment: {ENV_AGENT}, {ENV_LOCK_TIMEOUT}, {ENV_SYMBOLS}",
        ]
        return "\n".join(lines)
