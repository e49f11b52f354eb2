import unittest
from unittest.mock import MagicMock, Mock, patch

from unitctl.core import notification_manager
from unitctl.core.notification_manager import NotificationManager


MODULE = notification_manager.__spec__.name


@patch("{}.QCoreApplication".format(MODULE))
@patch("{}.QDBusInterface".format(MODULE))
@patch("{}.QDBusConnection".format(MODULE))
class TestNotificationManager(unittest.TestCase):

    def test_notify_over_dbus(self, connection: Mock, interface: Mock, app: Mock):
        connection.sessionBus.return_value.isConnected.return_value = True
        iface = MagicMock()
        iface.isValid.return_value = True
        interface.return_value = iface

        manager = NotificationManager()
        manager.notify("Waiting for foo to stop.")

        iface.asyncCall.assert_called_once()
        args = iface.asyncCall.call_args[0]
        self.assertEqual(args[0], "Notify")
        self.assertEqual(args[4], "unitctl")
        self.assertEqual(args[5], "Waiting for foo to stop.")
        self.assertEqual(args[7], {"urgency": 1})
        app.processEvents.assert_called_once_with()

    def test_error_urgency(self, connection: Mock, interface: Mock, app: Mock):
        connection.sessionBus.return_value.isConnected.return_value = True
        interface.return_value.isValid.return_value = True

        NotificationManager().notify_error("Stop failed", "foo did not stop")

        args = interface.return_value.asyncCall.call_args[0]
        self.assertEqual(args[7], {"urgency": 2})

    def test_no_session_bus(self, connection: Mock, interface: Mock, app: Mock):
        connection.sessionBus.return_value.isConnected.return_value = False

        manager = NotificationManager()
        with self.assertLogs(MODULE, "INFO") as logs:
            manager.notify("Waiting for foo to stop.")

        self.assertIn("unitctl: Waiting for foo to stop.", "\n".join(logs.output))
        interface.return_value.asyncCall.assert_not_called()

    def test_disabled(self, connection: Mock, interface: Mock, app: Mock):
        manager = NotificationManager(enabled=False)
        with self.assertLogs(MODULE, "INFO"):
            manager.notify("Waiting for foo to stop.")
        connection.sessionBus.assert_not_called()
        app.assert_not_called()
        app.instance.assert_not_called()

    def test_creates_application(self, connection: Mock, interface: Mock, app: Mock):
        app.instance.return_value = None
        connection.sessionBus.return_value.isConnected.return_value = False

        manager = NotificationManager()

        app.assert_called_once_with(["unitctl"])
        self.assertIs(manager._app, app.return_value)

    def test_reuses_application(self, connection: Mock, interface: Mock, app: Mock):
        connection.sessionBus.return_value.isConnected.return_value = False

        manager = NotificationManager()

        app.assert_not_called()
        self.assertIs(manager._app, app.instance.return_value)


if __name__ == "__main__":
    unittest.main()
