"""Data models for systemd service management."""

from .service import ActiveState, RestartCondition, ServiceDescription, ServiceStatus
from .log import Log

__all__ = ["ActiveState", "RestartCondition", "ServiceDescription", "ServiceStatus", "Log"]
