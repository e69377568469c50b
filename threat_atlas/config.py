"""Configuration management for the threat atlas pipeline."""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional


class Config:
    """Manages configuration loading and access."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_path: Path to config file. If None, uses default config.
        """
        self.config_dir = Path(__file__).parent.parent / "config"

        # Load default config
        default_config_path = self.config_dir / "default.yaml"
        with open(default_config_path, 'r') as f:
            self.config = yaml.safe_load(f) or {}

        # Override with local config if it exists
        local_config_path = self.config_dir / "local.yaml"
        if local_config_path.exists():
            with open(local_config_path, 'r') as f:
                local_config = yaml.safe_load(f) or {}
                self._merge_configs(self.config, local_config)

        # Override with custom config if provided
        if config_path and os.path.exists(config_path):
            with open(config_path, 'r') as f:
                custom_config = yaml.safe_load(f) or {}
                self._merge_configs(self.config, custom_config)

        # Override with environment variables
        self._apply_env_overrides()

    def _merge_configs(self, base: Dict, override: Dict):
        """Recursively merge override config into base config."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._merge_configs(base[key], value)
            else:
                base[key] = value

    def _apply_env_overrides(self):
        """Apply environment variable overrides."""
        storage = self.config.setdefault('storage', {})
        extraction = self.config.setdefault('extraction', {})

        if os.getenv('THREAT_ATLAS_DATA_DIR'):
            storage['data_dir'] = os.getenv('THREAT_ATLAS_DATA_DIR')

        if os.getenv('THREAT_ATLAS_CACHE_TTL'):
            storage['cache_ttl_seconds'] = float(os.getenv('THREAT_ATLAS_CACHE_TTL'))

        if os.getenv('GEMINI_API_KEY'):
            extraction['api_key'] = os.getenv('GEMINI_API_KEY')

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key: Configuration key (e.g., 'storage.data_dir')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def get_articles_path(self) -> str:
        """Get the path of the articles CSV file."""
        data_dir = self.get('storage.data_dir', 'data')
        return str(Path(data_dir) / self.get('storage.articles_file', 'articles.csv'))

    def get_countries_path(self) -> Optional[str]:
        """Get the country reference file; None means the bundled table."""
        return self.get('storage.countries_file')

    def get_cache_ttl(self) -> float:
        return float(self.get('storage.cache_ttl_seconds', 30))

    def get_preferred_models(self) -> List[str]:
        return list(self.get('extraction.preferred_models', []) or [])

    def get_unsupported_extensions(self) -> List[str]:
        return [ext.lower() for ext in self.get('ingestion.unsupported_extensions', []) or []]


# Global config instance
_config = None

def get_config(config_path: Optional[str] = None) -> Config:
    """Get the global config instance."""
    global _config
    if _config is None:
        _config = Config(config_path)
    return _config


def reset_config():
    """Drop the global config so the next get_config() reloads it."""
    global _config
    _config = None
