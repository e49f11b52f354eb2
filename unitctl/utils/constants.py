"""Application constants and configuration."""

from pathlib import Path

# Application metadata
APP_NAME = "unitctl"
APP_ICON = "preferences-system"

# Paths
CONFIG_DIR = Path.home() / ".config" / "unitctl"
CONFIG_FILE = CONFIG_DIR / "config.yaml"
LOG_FILE = CONFIG_DIR / "unitctl.log"

# Layout inside the (possibly alternate) root
SERVICES_DIR = "/etc/systemd/system"
APPS_DATA_DIR = "/var/apps"
APPS_HOME_DIR = "/root/apps"
LIB_GL_DIR = "/var/lib/snapd/lib/gl"

# Unit file contents
LAUNCHER = "/usr/bin/ubuntu-core-launcher"
FRAMEWORKS_TARGET = "snapd.frameworks.target"
INSTALL_TARGET = "multi-user.target"

# Stop polling: a fast phase of STOP_FAST_ATTEMPTS polls STOP_FAST_DELAY apart,
# then polls every STOP_POLL_INTERVAL until the caller's timeout (seconds)
STOP_FAST_ATTEMPTS = 20
STOP_FAST_DELAY = 0.25
STOP_POLL_INTERVAL = 0.25
DEFAULT_STOP_TIMEOUT = 30

# Journal
DEFAULT_LOG_LINES = 100

# Notification settings
NOTIFICATION_TIMEOUT = 5000  # milliseconds
