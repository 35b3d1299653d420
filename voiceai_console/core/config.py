"""
Configuration Management
Loads console settings from environment variables and YAML cache policies
"""
import yaml
import os
from pathlib import Path
from typing import Any, Dict, Optional
from pydantic_settings import BaseSettings


DEFAULT_API_URL = "http://localhost:8080/api/v1"


class Settings(BaseSettings):
    """Console settings loaded from environment (VOICEAI_ prefix)"""

    environment: str = "development"

    # Backend API
    api_url: str = DEFAULT_API_URL
    request_timeout: float = 30.0

    # Persisted session (empty path = in-memory only)
    token_store_path: str = ""
    encryption_key: str = ""

    log_level: str = "INFO"
    config_dir: str = ""

    class Config:
        env_prefix = "VOICEAI_"
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


class ConfigManager:
    """Manages loading and merging configuration from multiple sources"""

    def __init__(self, env: str = "development", config_dir: Optional[str] = None):
        self.env = env
        self.config_dir = Path(config_dir) if config_dir else Path(__file__).parent.parent.parent / "config"
        self._config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration files in order of precedence"""
        default_path = self.config_dir / "default.yaml"
        if default_path.exists():
            self._config = self._load_yaml(default_path)

        # Environment-specific overrides
        env_path = self.config_dir / f"{self.env}.yaml"
        if env_path.exists():
            env_config = self._load_yaml(env_path)
            self._deep_merge(self._config, env_config)

        self._substitute_env_vars(self._config)

    def _load_yaml(self, path: Path) -> Dict:
        """Load YAML file"""
        with open(path, 'r') as f:
            return yaml.safe_load(f) or {}

    def _substitute_env_vars(self, config: Dict) -> None:
        """Replace ${VAR_NAME} with environment variable values"""
        for key, value in config.items():
            if isinstance(value, dict):
                self._substitute_env_vars(value)
            elif isinstance(value, str) and value.startswith("${") and value.endswith("}"):
                env_var = value[2:-1]
                config[key] = os.getenv(env_var, value)

    def _deep_merge(self, base: Dict, override: Dict) -> None:
        """Recursively merge override into base"""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation
        Example: config.get("cache.agents.list.stale_time") -> 900
        """
        keys = key_path.split('.')
        value = self._config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def get_cache_policy(self, resource: str, query: str) -> Dict[str, float]:
        """
        Get stale/cache times (seconds) for a resource query.

        Falls back to cache.defaults when the query has no entry.
        """
        defaults = self.get("cache.defaults", {}) or {}
        policy = self.get(f"cache.{resource}.{query}", {}) or {}
        return {
            "stale_time": float(policy.get("stale_time", defaults.get("stale_time", 0))),
            "cache_time": float(policy.get("cache_time", defaults.get("cache_time", 300))),
        }
