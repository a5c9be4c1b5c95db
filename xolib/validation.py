#!/usr/bin/env python3
"""
Input validation utilities for the XO backup orchestrator.

This module validates CLI arguments, object identifiers, backup attributes,
desired address sets and other external inputs before they reach the remote
API.

Features:
- Object id and backup name validation
- Backup mode, type and power state validation
- Desired address set validation (slot ordinals, families, CIDR pools)
- API URL validation
- Filesystem path validation for config files
"""

import logging
import re
from typing import Mapping, Pattern
from urllib.parse import urlparse

from xolib.conditions import AddressRequirement
from xolib.constants import BACKUP_MODES, BACKUP_TYPES, LOGGER_NAME
from xolib.exceptions import SecurityValidationError, ValidationError
from xolib.models import PowerState

logger = logging.getLogger(LOGGER_NAME)

# Remote object ids are UUIDs in practice, but older objects use opaque refs
# such as "OpaqueRef:..." so the pattern stays permissive.
OBJECT_ID_PATTERN: Pattern[str] = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.:\-]*$")
OBJECT_ID_MAX_LENGTH = 128

BACKUP_NAME_MAX_LENGTH = 255
CONTROL_CHAR_PATTERN: Pattern[str] = re.compile(r"[\x00-\x1f\x7f]")

SLOT_PATTERN: Pattern[str] = re.compile(r"^\d+$")

URL_SCHEMES = ("http", "https", "ws", "wss")


class InputValidator:
    """Input validation for backup orchestration."""

    @staticmethod
    def validate_object_id(value: str, field_name: str = "id") -> None:
        """
        Validate a remote object identifier.

        Args:
            value: The identifier to validate
            field_name: Name of the field for error messages

        Raises:
            ValidationError: If the identifier is invalid
        """
        if not value:
            raise ValidationError(f"{field_name} cannot be empty")

        if len(value) > OBJECT_ID_MAX_LENGTH:
            raise ValidationError(
                f"{field_name} '{value}' exceeds maximum length of {OBJECT_ID_MAX_LENGTH} characters"
            )

        if not OBJECT_ID_PATTERN.match(value):
            raise ValidationError(
                f"Invalid {field_name} '{value}'. "
                f"Must consist of alphanumeric characters, '-', '_', '.', or ':', "
                f"and must start with an alphanumeric character"
            )

    @staticmethod
    def validate_backup_name(name: str) -> None:
        """
        Validate a backup job name.

        Raises:
            ValidationError: If name is empty, too long or contains control characters
        """
        InputValidator.validate_non_empty_string(name, "Backup name")

        if len(name) > BACKUP_NAME_MAX_LENGTH:
            raise ValidationError(
                f"Backup name '{name}' exceeds maximum length of {BACKUP_NAME_MAX_LENGTH} characters"
            )

        if CONTROL_CHAR_PATTERN.search(name):
            raise ValidationError(f"Backup name {name!r} contains control characters")

    @staticmethod
    def _validate_choice(value: str, valid_choices: tuple, field_name: str) -> None:
        """Validate that a value is one of the allowed choices.

        Raises:
            ValidationError: If value is not in valid_choices
        """
        if value not in valid_choices:
            raise ValidationError(f"Invalid {field_name} '{value}'. Must be one of: {', '.join(valid_choices)}")

    @staticmethod
    def validate_backup_mode(mode: str) -> None:
        InputValidator._validate_choice(mode, BACKUP_MODES, "backup mode")

    @staticmethod
    def validate_backup_type(backup_type: str) -> None:
        InputValidator._validate_choice(backup_type, BACKUP_TYPES, "backup type")

    @staticmethod
    def validate_power_state(power_state: str) -> None:
        InputValidator._validate_choice(
            power_state,
            tuple(state.value for state in PowerState),
            "power state",
        )

    @staticmethod
    def validate_wait_for_ips(wait_for_ips: Mapping[str, str]) -> None:
        """
        Validate a desired address set.

        Keys are interface slot ordinals ("0", "1", ...). Values are an address
        family ("ipv4", "ipv6"), an empty string for any family, or a CIDR pool.

        Raises:
            ValidationError: If a slot or requirement is invalid
        """
        for slot, spec in wait_for_ips.items():
            if not SLOT_PATTERN.match(str(slot)):
                raise ValidationError(f"Invalid interface slot '{slot}'. Must be a non-negative integer")
            AddressRequirement.parse(spec)

    @staticmethod
    def validate_url(url: str) -> None:
        """
        Validate the remote API URL.

        Raises:
            ValidationError: If the URL has no host or an unsupported scheme
        """
        InputValidator.validate_non_empty_string(url, "URL")
        parsed = urlparse(url)
        if parsed.scheme not in URL_SCHEMES:
            raise ValidationError(f"Invalid URL '{url}'. Scheme must be one of: {', '.join(URL_SCHEMES)}")
        if not parsed.netloc:
            raise ValidationError(f"Invalid URL '{url}'. Missing host")

    @staticmethod
    def validate_timeout(value: float, field_name: str, allow_zero: bool = True) -> None:
        """Validate a duration in seconds."""
        if value < 0 or (value == 0 and not allow_zero):
            qualifier = "non-negative" if allow_zero else "positive"
            raise ValidationError(f"{field_name} must be {qualifier}, got {value}")

    @staticmethod
    def validate_non_empty_string(value: str, field_name: str) -> None:
        """
        Validate that a string is not empty or whitespace-only.

        Raises:
            ValidationError: If string is empty or whitespace-only
        """
        if not value or not value.strip():
            raise ValidationError(f"{field_name} cannot be empty or whitespace-only")

    @staticmethod
    def validate_safe_filesystem_path(path: str, field_name: str) -> None:
        """
        Validate that a path is safe to read.

        Raises:
            SecurityValidationError: If path contains unsafe characters or patterns
            ValidationError: If path is empty
        """
        if not path:
            raise ValidationError(f"{field_name} path cannot be empty")

        if ".." in path.split("/"):
            raise SecurityValidationError(
                f"SECURITY: Path traversal attempt detected in {field_name} path '{path}'. "
                f"The '..' sequence is not allowed as a path component."
            )

        unsafe_chars = ["$", "{", "}", "|", "&", ";", "<", ">", "`"]
        if any(char in path for char in unsafe_chars):
            raise SecurityValidationError(
                f"SECURITY: Invalid characters in {field_name} path '{path}'. "
                f"Disallowed patterns: {', '.join(unsafe_chars)}."
            )

    @staticmethod
    def validate_all_cli_args(args: object) -> None:
        """
        Validate all CLI arguments.

        Args:
            args: Parsed CLI arguments object

        Raises:
            ValidationError: If any argument validation fails
        """
        if getattr(args, "config", None):
            InputValidator.validate_safe_filesystem_path(args.config, "config")

        if getattr(args, "id", None) is not None:
            InputValidator.validate_object_id(args.id, "backup id")

        if getattr(args, "name", None) is not None:
            InputValidator.validate_backup_name(args.name)

        if getattr(args, "mode", None):
            InputValidator.validate_backup_mode(args.mode)

        if getattr(args, "type", None):
            InputValidator.validate_backup_type(args.type)

        if getattr(args, "power_state", None):
            InputValidator.validate_power_state(args.power_state)

        for vm_id in getattr(args, "vms", None) or []:
            InputValidator.validate_object_id(vm_id, "VM id")

        for remote_id in getattr(args, "remotes", None) or []:
            InputValidator.validate_object_id(remote_id, "remote id")

        resource_set = getattr(args, "resource_set", None)
        if resource_set:
            InputValidator.validate_object_id(resource_set, "resource set id")

        if getattr(args, "wait_for_ips", None):
            InputValidator.validate_wait_for_ips(args.wait_for_ips)

        if getattr(args, "timeout", None) is not None:
            InputValidator.validate_timeout(args.timeout, "--timeout")

        if getattr(args, "interval", None) is not None:
            InputValidator.validate_timeout(args.interval, "--interval", allow_zero=False)
