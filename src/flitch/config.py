"""
Flitch Configuration

Loads tool configuration from a YAML file and environment variables.

Lookup order (later wins):
1. Built-in defaults
2. Config file: explicit path, else ~/.flitch/config.yaml if present
3. Environment variables (FLITCH_STANDARD, FLITCH_STANDARDS_DIR)

Command line options are applied on top by the CLI.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from flitch.errors import ConfigError
from flitch.standard.resolver import BUILTIN_STANDARDS_DIR

logger = logging.getLogger(__name__)

FLITCH_HOME = Path.home() / ".flitch"

CONFIG_SEARCH_PATHS = [
    FLITCH_HOME / "config.yaml",
]

DEFAULT_CONFIG: Dict[str, Any] = {
    "standard": "ZF2",
    "user_standards_dir": str(FLITCH_HOME / "standards"),
    "extensions": [".php"],
    "exclude_dirs": [".git", ".svn", ".hg", "vendor", "node_modules"],
}

ENV_MAPPINGS = {
    "FLITCH_STANDARD": "standard",
    "FLITCH_STANDARDS_DIR": "user_standards_dir",
}


class FlitchConfig:
    """Configuration for a Flitch run."""

    def __init__(self, config_path: Optional[Path] = None, environ: Optional[Dict[str, str]] = None):
        self._config: Dict[str, Any] = dict(DEFAULT_CONFIG)
        self._config_path: Optional[Path] = None

        self._load_config(config_path)
        self._apply_env_overrides(os.environ if environ is None else environ)

    def _load_config(self, explicit_path: Optional[Path] = None) -> None:
        """Load configuration from a YAML file."""
        if explicit_path is not None:
            explicit_path = Path(explicit_path)
            if not explicit_path.is_file():
                raise ConfigError(f"Config file not found: {explicit_path}")
            search_paths = [explicit_path]
        else:
            search_paths = CONFIG_SEARCH_PATHS

        for config_path in search_paths:
            if not config_path.is_file():
                continue
            try:
                with open(config_path, "r", encoding="utf-8") as f:
                    user_config = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigError(f"Failed to load config from {config_path}: {e}") from e
            if not isinstance(user_config, dict):
                raise ConfigError(f"Config file {config_path} must contain a mapping")

            unknown = sorted(set(user_config) - set(DEFAULT_CONFIG))
            if unknown:
                logger.warning(f"{config_path}: ignoring unknown keys {', '.join(unknown)}")
            self._config.update({k: v for k, v in user_config.items() if k in DEFAULT_CONFIG})
            self._config_path = config_path
            return

    def _apply_env_overrides(self, environ) -> None:
        """Apply environment variable overrides."""
        for env_var, config_key in ENV_MAPPINGS.items():
            if environ.get(env_var):
                self._config[config_key] = environ[env_var]

    @property
    def config_path(self) -> Optional[Path]:
        """Path to loaded config file, or None if using defaults."""
        return self._config_path

    @property
    def standard(self) -> str:
        """Name of the standard to check against."""
        return str(self._config["standard"])

    @property
    def builtin_standards_dir(self) -> Path:
        return BUILTIN_STANDARDS_DIR

    @property
    def user_standards_dir(self) -> Path:
        """Directory of user-level standard overrides."""
        return Path(self._config["user_standards_dir"]).expanduser()

    @property
    def extensions(self) -> Tuple[str, ...]:
        """Lower-cased file extensions picked up when scanning directories."""
        exts = self._config["extensions"]
        if isinstance(exts, str):
            exts = [e for e in exts.split(",") if e.strip()]
        return tuple(
            (e.strip() if e.strip().startswith(".") else f".{e.strip()}").lower()
            for e in exts
        )

    @property
    def exclude_dirs(self) -> Tuple[str, ...]:
        return tuple(self._config["exclude_dirs"])

    def to_dict(self) -> Dict[str, Any]:
        """Export current configuration as dict."""
        return {
            "standard": self.standard,
            "builtin_standards_dir": str(self.builtin_standards_dir),
            "user_standards_dir": str(self.user_standards_dir),
            "extensions": list(self.extensions),
            "exclude_dirs": list(self.exclude_dirs),
            "config_file": str(self._config_path) if self._config_path else None,
        }
