"""
Configuration Management for AppDeck
Handles loading and saving the indexing engine settings
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Dict, Any, List, Optional

from platformdirs import PlatformDirs

logger = logging.getLogger(__name__)

APP_NAME = "AppDeck"
APP_AUTHOR = "AppDeck"
HOME_ENV_VAR = "APPDECK_HOME"


def default_config_dir() -> Path:
    """Directory holding settings.json"""
    override = os.getenv(HOME_ENV_VAR)
    if override:
        return Path(override)
    return Path(PlatformDirs(APP_NAME, APP_AUTHOR).user_config_dir)


def default_data_dir() -> Path:
    """Directory holding the persisted app index"""
    override = os.getenv(HOME_ENV_VAR)
    if override:
        return Path(override)
    return Path(PlatformDirs(APP_NAME, APP_AUTHOR).user_data_dir)


class ConfigManager:
    def __init__(self, config_dir: Optional[Path] = None, data_dir: Optional[Path] = None):
        self.config_dir = Path(config_dir) if config_dir else default_config_dir()
        self.data_dir = Path(data_dir) if data_dir else (
            self.config_dir if config_dir else default_data_dir()
        )
        self.settings_config_file = self.config_dir / "settings.json"

        # Load configuration
        self.settings_config = self._load_settings_config()

    def _load_settings_config(self) -> Dict[str, Any]:
        """Load settings configuration, filling gaps from the defaults"""
        settings = self._get_default_settings_config()

        if self.settings_config_file.exists():
            try:
                with open(self.settings_config_file, 'r', encoding='utf-8') as f:
                    stored = json.load(f)
                if not isinstance(stored, dict):
                    raise ValueError("settings root is not an object")
                for section, values in stored.items():
                    if isinstance(values, dict) and isinstance(settings.get(section), dict):
                        settings[section].update(values)
                    else:
                        settings[section] = values
            except (OSError, ValueError) as e:
                logger.error(f"Error loading settings config: {e}")

        return settings

    def _get_default_settings_config(self) -> Dict[str, Any]:
        """Get default settings configuration"""
        return copy.deepcopy({
            "index": {
                "staleness_ttl": 60 * 60,            # 1 hour
                "periodic_interval": 6 * 60 * 60,    # 6 hours
                "shortcut_max_depth": 5,
                "filesystem_max_depth": 3,
                "extra_roots": [],
                "extra_shortcut_dirs": [],
                "cache_file": "app_index.json"
            },
            "exclusion": {
                "allow_list": [],
                "blacklist": []
            },
            "logging": {
                "level": "INFO"
            }
        })

    def save_settings_config(self) -> bool:
        """Save settings configuration to file"""
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.settings_config_file, 'w', encoding='utf-8') as f:
                json.dump(self.settings_config, f, indent=4)
            return True
        except (OSError, TypeError) as e:
            logger.error(f"Error saving settings config: {e}")
            return False

    def get_setting(self, section: str, key: str, default: Any = None) -> Any:
        """Get a specific setting value"""
        return self.settings_config.get(section, {}).get(key, default)

    def set_setting(self, section: str, key: str, value: Any) -> bool:
        """Set a specific setting value"""
        if section not in self.settings_config:
            self.settings_config[section] = {}

        self.settings_config[section][key] = value
        return self.save_settings_config()

    def get_index_settings(self) -> Dict[str, Any]:
        """Get indexing settings"""
        return self.settings_config.get("index", {})

    def get_exclusion_settings(self) -> Dict[str, Any]:
        """Get exclusion policy overrides"""
        return self.settings_config.get("exclusion", {})

    def get_log_level(self) -> str:
        return str(self.get_setting("logging", "level", "INFO")).upper()

    def get_extra_roots(self) -> List[str]:
        return [str(p) for p in self.get_setting("index", "extra_roots", []) or []]

    def get_extra_shortcut_dirs(self) -> List[str]:
        return [str(p) for p in self.get_setting("index", "extra_shortcut_dirs", []) or []]

    @property
    def cache_file(self) -> Path:
        """Location of the persisted app index"""
        name = self.get_setting("index", "cache_file", "app_index.json")
        path = Path(name)
        return path if path.is_absolute() else self.data_dir / path

    def reset_to_defaults(self) -> bool:
        """Reset all configurations to defaults"""
        self.settings_config = self._get_default_settings_config()
        return self.save_settings_config()
