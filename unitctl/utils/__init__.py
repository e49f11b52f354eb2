"""Utility functions and constants."""

from .constants import *
from .arch import ubuntu_architecture

__all__ = ["APP_NAME", "CONFIG_DIR", "CONFIG_FILE", "SERVICES_DIR", "ubuntu_architecture"]
