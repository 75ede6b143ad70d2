"""Server configuration: YAML file merged over built-in defaults."""

import copy
import logging
import os

import yaml

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA_PATH = os.path.join(
    os.path.dirname(os.path.abspath(__file__)), "schemas", "log_entry.json"
)


class Config:
    """Configuration manager that loads from YAML and merges with defaults.

    ``PORT`` and ``LOG_DIR`` environment variables win over both.
    """

    DEFAULTS = {
        "server": {
            "host": "0.0.0.0",
            "port": 3000,
            "debug": False,
        },
        "storage": {
            "log_dir": "log",
        },
        "retention": {
            "max_age_days": 7,
            "sweep_interval_hours": 24,
            "sweep_on_write": True,
            "scheduler_enabled": True,
        },
        "schema": {
            "path": DEFAULT_SCHEMA_PATH,
        },
    }

    def __init__(self, config_path=None, overrides=None):
        self._config = copy.deepcopy(self.DEFAULTS)

        if config_path is not None:
            try:
                with open(config_path, "r") as f:
                    user_config = yaml.safe_load(f)

                if user_config and isinstance(user_config, dict):
                    self._config = self._deep_merge(self._config, user_config)
            except FileNotFoundError:
                pass
            except yaml.YAMLError:
                logger.warning("Invalid YAML in %s, using defaults", config_path)

        self._apply_env()

        if overrides:
            self._config = self._deep_merge(self._config, overrides)

    def _apply_env(self):
        port = os.environ.get("PORT")
        if port:
            self._config["server"]["port"] = int(port)
        log_dir = os.environ.get("LOG_DIR")
        if log_dir:
            self._config["storage"]["log_dir"] = log_dir

    @staticmethod
    def _deep_merge(base, override):
        """Recursively merge override dict into base dict."""
        result = copy.deepcopy(base)
        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = Config._deep_merge(result[key], value)
            else:
                result[key] = copy.deepcopy(value)
        return result

    def get(self, key, default=None):
        """Get a top-level config key."""
        return self._config.get(key, default)

    def __getitem__(self, key):
        return self._config[key]

    def __contains__(self, key):
        return key in self._config
