"""Create, update and delete backup jobs and wait for the results to land."""

from __future__ import annotations

import dataclasses
import logging
import threading
from typing import Any, Dict, List, Mapping, Optional, Union

from xolib.commands import (
    CreateBackupRequest,
    DeleteBackupRequest,
    SetBlockedOperationsRequest,
    UpdateBackupRequest,
)
from xolib.conditions import addresses_assigned, attributes_match, power_state_reached
from xolib.constants import DEFAULT_SETTLE_DELAY, LOGGER_NAME
from xolib.exceptions import RPCError, WaitCancelledError, XOError
from xolib.lookup import MatchStrategy, ObjectLookup
from xolib.models import PowerState, VmBackup
from xolib.refresh import address_source, attributes_source, power_state_source
from xolib.rpc_client import XOClient
from xolib.validation import InputValidator
from xolib.waiter import WaitConfig, wait_for_state

logger = logging.getLogger(LOGGER_NAME)


class BackupManager:
    """Drives the backup job lifecycle on one remote API.

    Every mutating call blocks until its effect is observable and then
    returns the backup as read back from the remote. Failures propagate;
    nothing is rolled back.
    """

    def __init__(
        self,
        client: XOClient,
        lookup: Optional[ObjectLookup] = None,
        wait_config: Optional[WaitConfig] = None,
        cancel_event: Optional[threading.Event] = None,
        converge_updates: bool = True,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
    ) -> None:
        self.client = client
        self.lookup = lookup or ObjectLookup(client)
        self.wait_config = wait_config or WaitConfig()
        self.cancel_event = cancel_event or threading.Event()
        self.converge_updates = converge_updates
        self.settle_delay = settle_delay

    def _wait_config(self, timeout: Optional[float]) -> WaitConfig:
        if timeout is None:
            return self.wait_config
        return dataclasses.replace(self.wait_config, timeout=timeout)

    def create_backup(
        self,
        request: CreateBackupRequest,
        desired_state: Union[PowerState, str] = PowerState.DISABLED,
        wait_for_ips: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> VmBackup:
        """Create a backup job and return it once it reached the desired state."""
        InputValidator.validate_backup_name(request.name)
        InputValidator.validate_backup_mode(request.mode)
        InputValidator.validate_backup_type(request.type)
        if wait_for_ips:
            InputValidator.validate_wait_for_ips(wait_for_ips)

        logger.info("Creating backup %s (mode: %s, type: %s)", request.name, request.mode, request.type)
        backup_id = self.client.send(request)
        if not isinstance(backup_id, str) or not backup_id:
            raise RPCError(request.METHOD, f"expected a backup id, got {backup_id!r}")
        logger.info("Backup %s created with id %s", request.name, backup_id, extra={"backup_id": backup_id})

        self.wait_for_modify(backup_id, desired_state, wait_for_ips, timeout)
        return self.lookup.get_backup(MatchStrategy.BY_ID, backup_id)

    def update_backup(self, request: UpdateBackupRequest, timeout: Optional[float] = None) -> VmBackup:
        """Update a backup job and return it once the update is visible."""
        InputValidator.validate_object_id(request.id, "backup id")
        InputValidator.validate_backup_name(request.name)
        InputValidator.validate_backup_mode(request.mode)

        logger.info(
            "Updating backup %s (resource set: %s)",
            request.id,
            request.resource_set,
            extra={"backup_id": request.id},
        )
        if self.client.send(request) is False:
            raise RPCError(request.METHOD, f"remote reported failure updating backup {request.id}")

        if self.converge_updates:
            expected = request.observable_attributes()
            wait_for_state(
                f"backup {request.id} to reflect update",
                attributes_source(self.lookup, request.id, expected.keys()),
                attributes_match(expected),
                config=self._wait_config(timeout),
                logger=logger,
                cancel_event=self.cancel_event,
            )
        elif self.settle_delay > 0:
            logger.info("Waiting %ss for backup %s to settle", self.settle_delay, request.id)
            if self.cancel_event.wait(self.settle_delay):
                raise WaitCancelledError(f"Settle delay for backup {request.id} was cancelled")

        return self.lookup.get_backup(MatchStrategy.BY_ID, request.id)

    def delete_backup(self, backup_id: str) -> None:
        """Delete a backup job, lifting a destroy block first when present."""
        InputValidator.validate_object_id(backup_id, "backup id")
        self._remove_destroy_block(backup_id)
        self.client.send(DeleteBackupRequest(backup_id))
        logger.info("Deleted backup %s", backup_id, extra={"backup_id": backup_id})

    def _remove_destroy_block(self, backup_id: str) -> None:
        # Best effort: a failure here is logged and the delete still runs, so
        # the delete call reports the real outcome.
        try:
            backup = self.lookup.get_backup(MatchStrategy.BY_ID, backup_id)
            if not backup.is_destroy_blocked():
                return
            logger.info("Removing destroy block on backup %s", backup_id)
            self.client.send(SetBlockedOperationsRequest.clear_destroy_block(backup_id))
        except XOError as e:
            logger.warning(
                "Error removing destroy block on backup %s: %s", backup_id, e, extra={"backup_id": backup_id}
            )

    def get_backup(self, backup_id: Optional[str] = None, name: Optional[str] = None) -> VmBackup:
        """Return the single backup matching ``backup_id`` or, failing that, ``name``."""
        if backup_id:
            return self.lookup.get_backup(MatchStrategy.BY_ID, backup_id)
        if name:
            return self.lookup.get_backup(MatchStrategy.BY_NAME, name)
        raise ValueError("Either backup_id or name is required")

    def get_backups(self, **filters: Any) -> List[VmBackup]:
        return self.lookup.get_backups(filters)

    def wait_for_modify(
        self,
        backup_id: str,
        desired_state: Union[PowerState, str],
        wait_for_ips: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """Wait for addresses when any are requested, otherwise for the power state."""
        if not wait_for_ips:
            return self.wait_for_power_state(backup_id, desired_state, timeout)
        return self.wait_for_ip_assignment(backup_id, wait_for_ips, timeout)

    def wait_for_power_state(
        self,
        backup_id: str,
        desired_state: Union[PowerState, str],
        timeout: Optional[float] = None,
    ) -> str:
        desired = PowerState(desired_state)
        return wait_for_state(
            f"backup {backup_id} to reach power state {desired.value}",
            power_state_source(self.lookup, backup_id),
            power_state_reached(desired),
            config=self._wait_config(timeout),
            logger=logger,
            cancel_event=self.cancel_event,
        )

    def wait_for_ip_assignment(
        self,
        backup_id: str,
        wait_for_ips: Mapping[str, str],
        timeout: Optional[float] = None,
    ) -> Dict[str, str]:
        return wait_for_state(
            f"backup {backup_id} to receive addresses on slot(s) {', '.join(sorted(map(str, wait_for_ips)))}",
            address_source(self.lookup, backup_id),
            addresses_assigned(wait_for_ips),
            config=self._wait_config(timeout),
            logger=logger,
            cancel_event=self.cancel_event,
        )
