"""unitctl - control and generate systemd service units."""

__version__ = "1.0.0"
