"""Configuration manager for loading and saving settings and service descriptions."""

import logging
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..models.service import ServiceDescription
from ..utils.constants import (
    CONFIG_FILE,
    DEFAULT_LOG_LINES,
    DEFAULT_STOP_TIMEOUT,
    STOP_FAST_ATTEMPTS,
    STOP_FAST_DELAY,
    STOP_POLL_INTERVAL,
)
from .stop_waiter import StopPolicy

logger = logging.getLogger(__name__)


class ConfigManager:
    """Manages settings and the declared service descriptions."""

    CONFIG_VERSION = "1.0"

    DEFAULT_SETTINGS = {
        "root_dir": "",
        "stop_timeout": DEFAULT_STOP_TIMEOUT,
        "stop_fast_attempts": STOP_FAST_ATTEMPTS,
        "stop_fast_delay": STOP_FAST_DELAY,
        "stop_poll_interval": STOP_POLL_INTERVAL,
        "log_lines": DEFAULT_LOG_LINES,
        "show_notifications": True,
    }

    def __init__(self, config_file: Path = CONFIG_FILE):
        """Initialize the config manager.

        Args:
            config_file: Path of the YAML configuration file
        """
        self.config_file = Path(config_file)
        self.services: List[ServiceDescription] = []
        self.settings: Dict[str, Any] = {}
        self._ensure_default_settings()

    def load_config(self) -> bool:
        """Load configuration from file.

        Returns:
            True if config loaded successfully, False if defaults are used
        """
        if not self.config_file.exists():
            logger.info("Config file not found, using defaults")
            self._load_defaults()
            return False

        try:
            with open(self.config_file, 'r') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"YAML parsing error: {e}")
            self._load_defaults()
            return False
        except OSError as e:
            logger.error(f"Failed to read config: {e}")
            self._load_defaults()
            return False

        if not data:
            logger.warning("Empty config file, using defaults")
            self._load_defaults()
            return False

        if not self._validate_config(data):
            logger.error("Invalid config file, using defaults")
            self._load_defaults()
            return False

        self.services = []
        for service_data in data.get("services", []):
            try:
                self.services.append(ServiceDescription.from_dict(service_data))
            except (TypeError, ValueError) as e:
                logger.error(f"Failed to load service description: {e}")

        self.settings = data.get("settings", {})
        self._ensure_default_settings()

        logger.info(f"Loaded {len(self.services)} services from config")
        return True

    def save_config(self) -> bool:
        """Save configuration to file.

        Returns:
            True if saved successfully, False otherwise
        """
        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)

            if self.config_file.exists():
                backup_file = self.config_file.with_suffix('.yaml.bak')
                shutil.copy2(self.config_file, backup_file)
                logger.debug(f"Created backup at {backup_file}")

            data = {
                "version": self.CONFIG_VERSION,
                "services": [service.to_dict() for service in self.services],
                "settings": self.settings
            }

            # Write to temp file first (atomic write)
            temp_file = self.config_file.with_suffix('.yaml.tmp')
            with open(temp_file, 'w') as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)

            temp_file.replace(self.config_file)

            logger.info(f"Saved {len(self.services)} services to config")
            return True

        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to save config: {e}")
            return False

    def add_service(self, service: ServiceDescription) -> bool:
        """Add a service description to the configuration.

        Returns:
            True if added, False if a description with the same snap and app exists
        """
        if self.get_service(service.snap_name, service.app_name) is not None:
            logger.warning(f"Service {service.snap_name}.{service.app_name} already exists")
            return False

        self.services.append(service)
        self.save_config()
        logger.info(f"Added service: {service.snap_name}.{service.app_name}")
        return True

    def remove_service(self, snap_name: str, app_name: str = "") -> bool:
        """Remove a service description from the configuration.

        Returns:
            True if removed, False if not found
        """
        original_count = len(self.services)
        self.services = [
            s for s in self.services
            if not (s.snap_name == snap_name and s.app_name == app_name)
        ]

        if len(self.services) < original_count:
            self.save_config()
            logger.info(f"Removed service: {snap_name}.{app_name}")
            return True

        logger.warning(f"Service {snap_name}.{app_name} not found")
        return False

    def get_service(self, snap_name: str, app_name: str = "") -> Optional[ServiceDescription]:
        """Get a service description by snap and app name."""
        for service in self.services:
            if service.snap_name == snap_name and service.app_name == app_name:
                return service
        return None

    def get_setting(self, key: str, default: Any = None) -> Any:
        """Get a setting value."""
        return self.settings.get(key, default)

    def set_setting(self, key: str, value: Any):
        """Set a setting value and save the configuration."""
        self.settings[key] = value
        self.save_config()

    def stop_policy(self) -> StopPolicy:
        """Build the stop polling policy from the settings.

        Falls back to the default policy if the settings are unusable.
        """
        try:
            return self._policy_from(self.settings)
        except (TypeError, ValueError) as e:
            logger.error(f"Invalid stop polling settings, using defaults: {e}")
            return StopPolicy()

    @staticmethod
    def _policy_from(settings: Dict[str, Any]) -> StopPolicy:
        return StopPolicy(
            fast_attempts=int(settings.get("stop_fast_attempts", STOP_FAST_ATTEMPTS)),
            fast_delay=float(settings.get("stop_fast_delay", STOP_FAST_DELAY)),
            poll_interval=float(settings.get("stop_poll_interval", STOP_POLL_INTERVAL)),
        )

    def _validate_config(self, data) -> bool:
        """Validate configuration data structure.

        Args:
            data: Parsed configuration

        Returns:
            True if valid, False otherwise
        """
        if not isinstance(data, dict):
            logger.error("Config must be a dictionary")
            return False

        if "version" not in data:
            logger.warning("Config missing version, assuming valid")

        services = data.get("services", [])
        if not isinstance(services, list) or not all(isinstance(s, dict) for s in services):
            logger.error("Services must be a list of mappings")
            return False

        if "settings" in data:
            if not isinstance(data["settings"], dict):
                logger.error("Settings must be a dictionary")
                return False
            if not self._validate_settings(data["settings"]):
                return False

        return True

    def _validate_settings(self, settings: Dict[str, Any]) -> bool:
        """Validate the stop and journal settings.

        Args:
            settings: Parsed settings mapping

        Returns:
            True if valid, False otherwise
        """
        try:
            self._policy_from(settings)
        except (TypeError, ValueError) as e:
            logger.error(f"Invalid stop polling settings: {e}")
            return False

        for key in ("stop_timeout", "log_lines"):
            value = settings.get(key, self.DEFAULT_SETTINGS[key])
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                logger.error(f"Setting {key} must be a non-negative number, got {value!r}")
                return False

        return True

    def _load_defaults(self):
        """Load default configuration."""
        self.services = []
        self.settings = {}
        self._ensure_default_settings()
        logger.info("Loaded default configuration")

    def _ensure_default_settings(self):
        """Ensure all default settings exist."""
        for key, value in self.DEFAULT_SETTINGS.items():
            if key not in self.settings:
                self.settings[key] = value
