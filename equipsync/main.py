#!/usr/bin/env python3
"""
EquipSync Controller - Entry Point

Usage:
    equipsync                        # Start with default config lookup
    equipsync --config my.yaml       # Use custom config file
    equipsync --dry-run              # Print parsed config and exit
    equipsync --verbose              # Enable debug logging
"""

import argparse
import asyncio
import sys

import yaml

from equipsync import __version__
from equipsync.common.config import config_to_dict, load_config_file
from equipsync.common.exceptions import ConfigError
from equipsync.common.logging_setup import get_service_logger, set_log_level
from equipsync.services.binding.service import BindingService

logger = get_service_logger("main")


def print_startup_banner(service: BindingService) -> None:
    config = service.config
    print()
    print("=" * 60)
    print("  EQUIPSYNC CONTROLLER")
    print("=" * 60)
    print(f"  Controller: {config.id} {config.name}".rstrip())
    print(f"  Config:     {service.config_path}")
    print(f"  Connections: {len(config.connections)}")
    for kind, count in config.count_equipment().items():
        print(f"  {kind}: {count}")
    print(f"  Polling every {config.settings.polling_interval_ms} ms")
    if config.settings.health_port:
        print(f"  Health: http://127.0.0.1:{config.settings.health_port}/health")
    print("=" * 60)
    print()


async def main_async(service: BindingService) -> None:
    try:
        await service.start()
    finally:
        await service.stop()


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="EquipSync Controller")
    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to configuration file (default: EQUIPSYNC_CONFIG or standard locations)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate configuration and exit without starting",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (debug) logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"EquipSync Controller v{__version__}",
    )
    args = parser.parse_args()

    service = BindingService(args.config)
    try:
        service.config = load_config_file(service.config_path)
    except ConfigError as e:
        print(f"Error: {e}")
        sys.exit(1)

    set_log_level("DEBUG" if args.verbose else service.config.settings.log_level)
    print_startup_banner(service)

    if args.dry_run:
        print(yaml.safe_dump(config_to_dict(service.config), sort_keys=False))
        print("Dry run mode - configuration valid")
        sys.exit(0)

    try:
        asyncio.run(main_async(service))
    except KeyboardInterrupt:
        print("\nStopped by user")
    except Exception as e:
        logger.critical(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
