"""Command-line entry point: run commands on a device.

    python -m device_shell 10.0.0.5 "uname -a" "uptime"
    python -m device_shell 10.0.0.5 --non-standard --nat-address 192.0.2.1 \
        --nat-port 2222 --username admin --password secret "ps | grep foo"
"""

import argparse
import asyncio
import dataclasses
import logging
import sys

from device_shell.config import RetryPolicy, Settings, load_properties_file
from device_shell.dependencies import Dependencies
from device_shell.errors import DeviceShellError
from device_shell.models import CommandType, Device, DeviceKind
from device_shell.utils.console import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="device_shell",
        description="Run shell commands on a device under test over SSH.",
    )
    parser.add_argument("host", help="Host address of the device")
    parser.add_argument("commands", nargs="*", help="Commands to run, in order")
    parser.add_argument("--non-standard", action="store_true",
                        help="Device is NAT-routed (requires NAT address/port and credentials)")
    parser.add_argument("--nat-address", help="NAT address of a non-standard device")
    parser.add_argument("--nat-port", type=int, help="NAT port of a non-standard device")
    parser.add_argument("--username", help="SSH username")
    parser.add_argument("--password", help="SSH password")
    parser.add_argument("--mac", default="", help="MAC address, used in log lines")
    parser.add_argument("--command-type", choices=[t.value for t in CommandType],
                        help="Tag applied to every command")
    parser.add_argument("--retry-policy", choices=[p.value for p in RetryPolicy],
                        help="Override the configured retry policy")
    parser.add_argument("--properties", help="Properties file to read settings from")
    parser.add_argument("--check", action="store_true",
                        help="Only check that the device is accessible")
    parser.add_argument("--log-level", help="Log level (default: DEVICE_SHELL_LOG_LEVEL or INFO)")
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    """Settings from --properties or the environment, plus CLI overrides."""
    if args.properties:
        settings = Settings.from_properties(load_properties_file(args.properties))
    else:
        settings = Settings.from_env()
    if args.retry_policy:
        settings = dataclasses.replace(settings, retry_policy=RetryPolicy(args.retry_policy))
    return settings


def build_device(args: argparse.Namespace) -> Device:
    """Device record from parsed arguments."""
    return Device(
        host_address=args.host,
        nat_address=args.nat_address,
        nat_port=args.nat_port,
        mac_address=args.mac,
        username=args.username,
        password=args.password,
        kind=DeviceKind.NON_STANDARD if args.non_standard else DeviceKind.STANDARD,
    )


async def run(args: argparse.Namespace) -> int:
    """Execute the parsed request; return the process exit code."""
    deps = Dependencies.from_settings(load_settings(args))
    device = build_device(args)

    if args.check:
        accessible = await deps.access.is_device_accessible(device)
        print("accessible" if accessible else "not accessible")
        return 0 if accessible else 1

    command_type = CommandType(args.command_type) if args.command_type else None
    try:
        output = await deps.executor.execute(device, args.commands, command_type=command_type)
    except DeviceShellError as e:
        logger.error("Execution failed: %s", e)
        return 1
    sys.stdout.write(output)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, configure logging and run."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.check and not args.commands:
        parser.error("at least one command is required unless --check is given")

    configure_logging(args.log_level)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
