import os
import yaml
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .constants import ENV_KEYS, DATA_DIR, DEFAULT_API_BASE_URL
from .exceptions import ConfigurationError


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes", "on")


@dataclass(frozen=True)
class EnvConfig:
    """
    Environment-driven configuration, read once at start-up.

    Built with ``EnvConfig.from_env()`` and passed to page objects, data
    providers and the executor. Empty strings mean "not set".
    """
    base_url: str = ""
    portal_url: str = ""
    subdomain: str = ""
    headless_mode: str = ""
    local: bool = False
    local_url: str = ""
    api_base_url: str = DEFAULT_API_BASE_URL
    data_dir: str = DATA_DIR

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EnvConfig":
        """Snapshot the relevant environment variables"""
        environ = os.environ if environ is None else environ

        def read(key: ENV_KEYS) -> str:
            return (environ.get(key.value) or "").strip()

        return cls(
            base_url=read(ENV_KEYS.BASE_URL),
            portal_url=read(ENV_KEYS.PORTAL_URL),
            subdomain=read(ENV_KEYS.SUBDOMAIN),
            headless_mode=read(ENV_KEYS.HEADLESS_MODE),
            local=_env_flag(read(ENV_KEYS.LOCAL)),
            local_url=read(ENV_KEYS.LOCAL_URL),
            api_base_url=read(ENV_KEYS.API_BASE_URL) or DEFAULT_API_BASE_URL,
            data_dir=read(ENV_KEYS.DATA_DIR) or DATA_DIR,
        )

    @property
    def headless(self) -> Optional[bool]:
        """HEADLESS_MODE as a bool, or None when unset"""
        if not self.headless_mode:
            return None
        return _env_flag(self.headless_mode)

    def require(self, field_name: str) -> str:
        """Return a configured value or fail with the variable that is missing"""
        value = getattr(self, field_name)
        if not value:
            env_key = ENV_KEYS[field_name.upper()].value
            raise ConfigurationError(f"{env_key} is not set")
        return value


class ConfigManager:
    """Manages the stepwright settings file"""

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = config_path or self._get_default_config_path()
        self._config = self._load_config()

    def _get_default_config_path(self) -> Path:
        """Get default configuration path"""
        # Check environment variable first
        if env_path := os.getenv("STEPWRIGHT_CONFIG"):
            return Path(env_path)

        locations = [
            Path.cwd() / "stepwright.yaml",
            Path.cwd() / ".stepwright" / "config.yaml",
            Path.home() / ".stepwright" / "config.yaml",
        ]

        for location in locations:
            if location.exists():
                return location

        return Path.home() / ".stepwright" / "config.yaml"

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from file, layered over the defaults"""
        config = self._get_default_config()
        if not self.config_path.exists():
            return config

        with open(self.config_path, 'r') as f:
            if self.config_path.suffix in ('.yaml', '.yml'):
                loaded = yaml.safe_load(f) or {}
            elif self.config_path.suffix == '.json':
                loaded = json.load(f)
            else:
                raise ConfigurationError(f"Unsupported config format: {self.config_path.suffix}")

        for section, values in loaded.items():
            if isinstance(values, dict) and isinstance(config.get(section), dict):
                config[section].update(values)
            else:
                config[section] = values
        return config

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration"""
        return {
            "general": {
                "log_level": "INFO",
            },
            "executor": {
                "browser": "chromium",
                "timeout": 30000,
                "navigation_timeout": 60000,
                "expect_timeout": 45000,
                "parallel_workers": 4,
                "screenshot_on_failure": True,
                "video_recording": False,
                "viewport": {"width": 1280, "height": 720},
            },
            "reporter": {
                "format": "html",
                "output_dir": "test-results",
            },
            "load": {
                "profile": "load",
                "host": DEFAULT_API_BASE_URL,
            },
        }

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation"""
        keys = key.split('.')
        value = self._config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """Set configuration value using dot notation"""
        keys = key.split('.')
        config = self._config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    def save(self) -> None:
        """Save configuration to file"""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.config_path, 'w') as f:
            if self.config_path.suffix == '.json':
                json.dump(self._config, f, indent=2)
            else:
                yaml.dump(self._config, f, default_flow_style=False)

    def get_module_config(self, module_name: str) -> Dict[str, Any]:
        """Get configuration for a specific section"""
        return self.get(module_name, {})
