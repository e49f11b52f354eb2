"""Notification manager for desktop progress notifications."""

import logging

from PyQt6.QtCore import QCoreApplication
from PyQt6.QtDBus import QDBusConnection, QDBusInterface

from ..utils.constants import APP_ICON, APP_NAME, NOTIFICATION_TIMEOUT

logger = logging.getLogger(__name__)

NOTIFICATIONS_SERVICE = "org.freedesktop.Notifications"
NOTIFICATIONS_PATH = "/org/freedesktop/Notifications"
NOTIFICATIONS_INTERFACE = "org.freedesktop.Notifications"

URGENCY_LEVELS = {
    "low": 0,
    "normal": 1,
    "critical": 2
}


class NotificationManager:
    """Reports progress messages as desktop notifications over D-Bus.

    Falls back to logging when no notification daemon is reachable. Calls
    are asynchronous so a slow daemon never holds up a service operation.
    """

    def __init__(self, enabled: bool = True):
        """Initialize the notification manager.

        Args:
            enabled: False to only log messages
        """
        self.enabled = enabled
        self._app = None
        if enabled:
            # QtDBus needs an application object to deliver calls
            self._app = QCoreApplication.instance() or QCoreApplication([APP_NAME])
        self._dbus_available = enabled and self._check_dbus_notifications()

    def _interface(self) -> QDBusInterface:
        return QDBusInterface(
            NOTIFICATIONS_SERVICE,
            NOTIFICATIONS_PATH,
            NOTIFICATIONS_INTERFACE,
            QDBusConnection.sessionBus()
        )

    def _check_dbus_notifications(self) -> bool:
        """Check if desktop notifications are available via D-Bus.

        Returns:
            True if the notification service answers, False otherwise
        """
        bus = QDBusConnection.sessionBus()
        if not bus.isConnected():
            logger.warning("D-Bus session bus not connected")
            return False

        if not self._interface().isValid():
            logger.warning("Notifications interface not available")
            return False

        logger.info("Desktop notifications available via D-Bus")
        return True

    def notify(self, message: str):
        """Report a progress message.

        Args:
            message: Human readable message, e.g. 'Waiting for foo to stop.'
        """
        self.send(APP_NAME, message)

    def notify_error(self, title: str, message: str):
        """Send an error notification."""
        self.send(title, message, "critical")

    def send(self, title: str, message: str, urgency: str = "normal"):
        """Send a notification, or log it when D-Bus is unavailable.

        Args:
            title: Notification title
            message: Notification message
            urgency: Urgency level ('low', 'normal', 'critical')
        """
        if not self._dbus_available:
            logger.info(f"{title}: {message}")
            return

        interface = self._interface()
        if not interface.isValid():
            logger.warning("D-Bus interface invalid, logging notification instead")
            logger.info(f"{title}: {message}")
            return

        # Signature: Notify(app_name, replaces_id, app_icon, summary, body, actions, hints, timeout)
        interface.asyncCall(
            "Notify",
            APP_NAME,
            0,
            APP_ICON,
            title,
            message,
            [],
            {"urgency": URGENCY_LEVELS.get(urgency, 1)},
            NOTIFICATION_TIMEOUT
        )
        QCoreApplication.processEvents()
        logger.debug(f"Sent notification: {title} - {message}")
