#!/usr/bin/env python3
"""Entry point for the unitctl command line tool."""

import argparse
import logging
import sys
from typing import List, Optional

from .core.config_manager import ConfigManager
from .core.service_manager import ServiceManager
from .models.errors import SystemdError, is_timeout
from .utils.constants import APP_NAME, CONFIG_DIR, LOG_FILE

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Set up application logging."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(LOG_FILE),
            logging.StreamHandler()
        ]
    )


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(prog=APP_NAME, description=f"{APP_NAME} - control systemd service units")
    parser.add_argument('-v', '--verbose', action='store_true', help='Log every systemctl call')
    parser.add_argument('--root', help='Alternate root directory for enable/disable and unit files')
    parser.add_argument('--no-notify', action='store_true', help='Do not send desktop notifications')

    sub = parser.add_subparsers(dest='command', required=True)

    for name in ('status', 'start', 'enable', 'disable'):
        cmd = sub.add_parser(name, help=f'{name.capitalize()} a unit')
        cmd.add_argument('service')

    for name in ('stop', 'restart'):
        cmd = sub.add_parser(name, help=f'{name.capitalize()} a unit and wait for it to stop')
        cmd.add_argument('service')
        cmd.add_argument('--timeout', type=float, help='Seconds to wait for the unit to stop')

    kill = sub.add_parser('kill', help='Send a signal to a unit')
    kill.add_argument('service')
    kill.add_argument('-s', '--signal', default='TERM')

    sub.add_parser('reload', help='Reload systemd unit definitions')

    logs = sub.add_parser('logs', help='Show recent journal entries')
    logs.add_argument('services', nargs='+')

    render = sub.add_parser('render', help='Render the unit file of a configured service')
    render.add_argument('snap')
    render.add_argument('app', nargs='?', default='')
    render.add_argument('--write', action='store_true', help='Write to the services directory')

    mount = sub.add_parser('mount', help='Write a squashfs mount unit')
    mount.add_argument('snap')
    mount.add_argument('what', help='Path of the squashfs image')
    mount.add_argument('where', help='Mount point')

    return parser


def build_service_manager(args, config_manager: ConfigManager) -> ServiceManager:
    """Create the service manager for the parsed arguments."""
    notifier = None
    if not args.no_notify and config_manager.get_setting("show_notifications", True):
        from .core.notification_manager import NotificationManager
        notifier = NotificationManager()

    root_dir = args.root if args.root is not None else config_manager.get_setting("root_dir", "")
    return ServiceManager(root_dir, notifier, stop_policy=config_manager.stop_policy())


def run(args, manager: ServiceManager, config_manager: ConfigManager) -> int:
    """Dispatch a parsed command.

    Returns:
        Process exit code
    """
    if args.command == 'status':
        print(manager.status(args.service))
    elif args.command == 'start':
        manager.start(args.service)
    elif args.command in ('stop', 'restart'):
        timeout = args.timeout if args.timeout is not None else config_manager.get_setting("stop_timeout")
        getattr(manager, args.command)(args.service, timeout)
    elif args.command == 'kill':
        manager.kill(args.service, args.signal)
    elif args.command == 'enable':
        manager.enable(args.service)
    elif args.command == 'disable':
        manager.disable(args.service)
    elif args.command == 'reload':
        manager.daemon_reload()
    elif args.command == 'logs':
        for entry in manager.logs(args.services):
            print(entry)
    elif args.command == 'render':
        desc = config_manager.get_service(args.snap, args.app)
        if desc is None:
            logger.error(f"No service {args.snap}.{args.app} in {config_manager.config_file}")
            return 1
        if args.write:
            print(manager.write_service_file(desc))
        else:
            sys.stdout.write(manager.gen_service_file(desc))
    elif args.command == 'mount':
        print(manager.services_dir / manager.write_mount_unit_file(args.snap, args.what, args.where))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    config_manager = ConfigManager()
    config_manager.load_config()
    manager = build_service_manager(args, config_manager)

    try:
        return run(args, manager, config_manager)
    except SystemdError as e:
        logger.error(str(e))
        return 2 if is_timeout(e) else 1


if __name__ == "__main__":
    sys.exit(main())
