#!/usr/bin/env python3
"""
XO Backup Orchestrator

Creates, updates and deletes Xen Orchestra VM backup jobs and blocks until
the remote reflects the change.

Features:
- Waits for the job's power state, or for interface addresses, after create
- Waits for updated attributes to become visible after update
- Best-effort removal of destroy blocks before delete
- Configuration from XOA_* environment variables or a YAML file
- Text or JSON log output
"""

import argparse
import json
import logging
import signal
import sys
import threading
from typing import Any, Dict, List, Optional

from operations import BackupManager
from xolib import (
    ClientConfig,
    WaitCancelledError,
    WaitConfig,
    XOClient,
    XOError,
    __version__,
    __version_date__,
    setup_logging,
)
from xolib.commands import CreateBackupRequest, OptionalRef, UpdateBackupRequest
from xolib.constants import (
    BACKUP_MODES,
    BACKUP_TYPE_VM,
    BACKUP_TYPES,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_RETRY_BUDGET,
    DEFAULT_WAIT_TIMEOUT,
    EXIT_FAILURE,
    EXIT_INTERRUPT,
    EXIT_SUCCESS,
)
from xolib.models import PowerState, VmBackup
from xolib.utils import confirm_action
from xolib.validation import InputValidator, ValidationError


def _parse_wait_for_ip(value: str) -> Dict[str, str]:
    slot, sep, requirement = value.partition("=")
    if not sep:
        raise argparse.ArgumentTypeError(f"expected SLOT=REQUIREMENT, got '{value}'")
    return {slot.strip(): requirement.strip()}


def _add_backup_fields(parser: argparse.ArgumentParser, name_required: bool) -> None:
    parser.add_argument("--name", required=name_required, help="Backup job name")
    parser.add_argument("--mode", choices=BACKUP_MODES, required=name_required, help="Backup mode")
    parser.add_argument("--type", choices=BACKUP_TYPES, default=BACKUP_TYPE_VM, help="Backup type (default: VM)")
    parser.add_argument("--vm", dest="vms", action="append", default=[], help="VM id to back up (repeatable)")
    parser.add_argument(
        "--remote", dest="remotes", action="append", default=[], help="Remote id to back up to (repeatable)"
    )
    parser.add_argument(
        "--resource-set",
        default=None,
        help="Resource set id. Pass an empty string to clear it on update; omit to leave it unchanged",
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Xen Orchestra backup job orchestration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create a backup job and wait until it reports Enabled
  %(prog)s create --name nightly --mode delta --vm 1b6e... --remote 7f3c... --power-state Enabled

  # Create and wait for an IPv4 address in 10.0.0.0/24 on the first interface
  %(prog)s create --name nightly --mode full --wait-for-ip 0=10.0.0.0/24

  # Update a job and clear its resource set
  %(prog)s update --id 4d2a... --name nightly --mode delta --resource-set ""

  # Delete a job without prompting
  %(prog)s delete --id 4d2a... --yes
        """,
    )

    parser.add_argument("--config", help="YAML config file (defaults to XOA_* environment variables)")
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_WAIT_TIMEOUT,
        help=f"Seconds to wait for changes to land (default: {DEFAULT_WAIT_TIMEOUT})",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=DEFAULT_POLL_INTERVAL,
        help=f"Seconds between polls (default: {DEFAULT_POLL_INTERVAL})",
    )
    parser.add_argument(
        "--retry-budget",
        type=int,
        default=DEFAULT_RETRY_BUDGET,
        help=f"Consecutive refresh failures tolerated while waiting (default: {DEFAULT_RETRY_BUDGET})",
    )

    # Logging
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default="text",
        help="Log output format (text or json)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    create = subparsers.add_parser("create", help="Create a backup job")
    _add_backup_fields(create, name_required=True)
    create.add_argument(
        "--power-state",
        choices=[state.value for state in PowerState],
        default=PowerState.DISABLED.value,
        help="Power state to wait for (default: Disabled)",
    )
    create.add_argument(
        "--wait-for-ip",
        dest="wait_for_ip",
        action="append",
        type=_parse_wait_for_ip,
        default=[],
        metavar="SLOT=REQUIREMENT",
        help="Wait for interface SLOT to get an address: ipv4, ipv6, a CIDR, or empty for any (repeatable)",
    )

    update = subparsers.add_parser("update", help="Update a backup job")
    update.add_argument("--id", required=True, help="Backup id")
    _add_backup_fields(update, name_required=True)

    delete = subparsers.add_parser("delete", help="Delete a backup job")
    delete.add_argument("--id", required=True, help="Backup id")
    delete.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    get = subparsers.add_parser("get", help="Show a single backup job")
    selector = get.add_mutually_exclusive_group(required=True)
    selector.add_argument("--id", help="Backup id")
    selector.add_argument("--name", help="Backup name")

    list_parser = subparsers.add_parser("list", help="List backup jobs")
    list_parser.add_argument("--mode", choices=BACKUP_MODES, help="Only jobs with this mode")
    list_parser.add_argument("--type", choices=BACKUP_TYPES, help="Only jobs of this type")
    list_parser.add_argument(
        "--power-state",
        choices=[state.value for state in PowerState],
        help="Only jobs in this power state",
    )

    args = parser.parse_args(argv)

    wait_for_ips: Dict[str, str] = {}
    for item in getattr(args, "wait_for_ip", []):
        wait_for_ips.update(item)
    args.wait_for_ips = wait_for_ips
    return args


def validate_args(args: argparse.Namespace, logger: logging.Logger) -> None:
    """Validate argument combinations and input values."""
    try:
        InputValidator.validate_all_cli_args(args)
        if args.retry_budget < 0:
            raise ValidationError("--retry-budget cannot be negative")
    except ValidationError as e:
        logger.error("Validation error: %s", str(e))
        sys.exit(EXIT_FAILURE)


def load_config(args: argparse.Namespace) -> ClientConfig:
    if args.config:
        return ClientConfig.from_file(args.config)
    return ClientConfig.from_env()


def _backup_output(backup: VmBackup) -> Dict[str, Any]:
    """Remote attributes plus the interface addresses split by family."""
    output = backup.to_dict()
    output["ipv4_addresses"] = backup.ipv4_addresses()
    output["ipv6_addresses"] = backup.ipv6_addresses()
    return output


def _print_backups(backups: List[VmBackup]) -> None:
    print(json.dumps([_backup_output(backup) for backup in backups], indent=2, sort_keys=True))


def _print_backup(backup: VmBackup) -> None:
    print(json.dumps(_backup_output(backup), indent=2, sort_keys=True))


def run_command(args: argparse.Namespace, manager: BackupManager, logger: logging.Logger) -> bool:
    """Execute the selected subcommand."""
    if args.command == "create":
        backup = manager.create_backup(
            CreateBackupRequest(
                name=args.name,
                mode=args.mode,
                type=args.type,
                vms={str(i): vm for i, vm in enumerate(args.vms)},
                remotes={str(i): remote for i, remote in enumerate(args.remotes)},
                resource_set=OptionalRef.from_id(args.resource_set or None),
            ),
            desired_state=args.power_state,
            wait_for_ips=args.wait_for_ips,
            timeout=args.timeout,
        )
        _print_backup(backup)
        return True

    if args.command == "update":
        backup = manager.update_backup(
            UpdateBackupRequest(
                id=args.id,
                name=args.name,
                mode=args.mode,
                type=args.type,
                vms={str(i): vm for i, vm in enumerate(args.vms)},
                remotes={str(i): remote for i, remote in enumerate(args.remotes)},
                resource_set=OptionalRef.from_id(args.resource_set),
            ),
            timeout=args.timeout,
        )
        _print_backup(backup)
        return True

    if args.command == "delete":
        if not args.yes and not confirm_action(f"Delete backup {args.id}?"):
            logger.info("Delete cancelled")
            return False
        manager.delete_backup(args.id)
        return True

    if args.command == "get":
        _print_backup(manager.get_backup(backup_id=args.id, name=args.name))
        return True

    if args.command == "list":
        _print_backups(manager.get_backups(mode=args.mode, type=args.type, power_state=args.power_state))
        return True

    raise ValueError(f"Unknown command: {args.command}")


def _install_signal_handlers(cancel_event: threading.Event, logger: logging.Logger) -> Dict[int, Any]:
    """Route SIGINT and SIGTERM to the shared cancel event.

    The first signal cancels the running wait at its next sleep. A second one
    interrupts immediately, e.g. a blocking prompt or an RPC retry backoff.
    """

    def _handle_signal(signum: int, _frame: Any) -> None:
        if cancel_event.is_set():
            raise KeyboardInterrupt
        logger.warning("Received signal %s; cancelling (repeat to abort immediately)", signum)
        cancel_event.set()

    previous = {}
    for sig in (signal.SIGINT, signal.SIGTERM):
        previous[sig] = signal.signal(sig, _handle_signal)
    return previous


def _restore_signal_handlers(previous: Dict[int, Any]) -> None:
    for sig, handler in previous.items():
        signal.signal(sig, handler)


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    args = parse_args(argv)

    # Set up logging early so validate_args can use logger
    logger = setup_logging(args.verbose, args.log_format)
    validate_args(args, logger)

    logger.info("XO Backup Orchestrator v%s (%s)", __version__, __version_date__)

    cancel_event = threading.Event()
    try:
        client = XOClient(load_config(args))
        manager = BackupManager(
            client,
            wait_config=WaitConfig(
                timeout=args.timeout,
                interval=args.interval,
                retry_budget=args.retry_budget,
            ),
            cancel_event=cancel_event,
        )
    except XOError as exc:
        logger.error("Failed to initialize client: %s", exc)
        sys.exit(EXIT_FAILURE)

    previous_handlers = _install_signal_handlers(cancel_event, logger)
    try:
        success = run_command(args, manager, logger)
    except (KeyboardInterrupt, WaitCancelledError):
        cancel_event.set()
        logger.warning("Operation interrupted by user")
        sys.exit(EXIT_INTERRUPT)
    except XOError as exc:
        logger.error("✗ %s", exc, exc_info=args.verbose)
        sys.exit(EXIT_FAILURE)
    finally:
        _restore_signal_handlers(previous_handlers)

    if success:
        logger.info("✓ Operation completed successfully!")
        sys.exit(EXIT_SUCCESS)

    logger.error("✗ Operation failed!")
    sys.exit(EXIT_FAILURE)


if __name__ == "__main__":
    main()
