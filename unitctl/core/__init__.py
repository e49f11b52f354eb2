"""Core functionality for systemd service management."""

from .service_manager import ServiceManager
from .config_manager import ConfigManager
from .stop_waiter import StopPhase, StopPolicy, StopWaiter

__all__ = ["ServiceManager", "ConfigManager", "StopPhase", "StopPolicy", "StopWaiter"]
