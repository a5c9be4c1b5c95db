"""Object lookup and filtering on top of ``xo.getAllObjects`` snapshots."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from xolib.constants import BACKUP_OBJECT_TYPE, LOGGER_NAME
from xolib.exceptions import AmbiguousMatchError, NotFoundError, ValidationError
from xolib.models import VmBackup
from xolib.rpc_client import XOClient

logger = logging.getLogger(LOGGER_NAME)


class MatchStrategy(Enum):
    """Which attribute identifies the object being looked up."""

    BY_ID = "id"
    BY_NAME = "name"

    @property
    def field(self) -> str:
        return self.value


class ObjectLookup:
    """Finds remote objects by id or name."""

    def __init__(self, client: XOClient) -> None:
        self.client = client

    def find(
        self, object_type: str, strategy: MatchStrategy, value: str, retry: bool = True
    ) -> List[Dict[str, Any]]:
        """Return every object of ``object_type`` whose matched attribute equals ``value``.

        ``retry=False`` makes a single request, for callers that run their own
        retry policy.
        """
        if not value:
            raise ValidationError(f"Cannot look up {object_type} by empty {strategy.field}")

        objects = self.client.get_all_objects(object_type, {strategy.field: value}, retry=retry)
        # The remote filter is advisory; re-check locally.
        return [obj for obj in objects if obj.get(strategy.field) == value]

    def get_one(
        self, object_type: str, strategy: MatchStrategy, value: str, retry: bool = True
    ) -> Dict[str, Any]:
        """Return the single matching object.

        Raises:
            NotFoundError: Nothing matched
            AmbiguousMatchError: More than one object matched
        """
        matches = self.find(object_type, strategy, value, retry=retry)
        if not matches:
            raise NotFoundError(f"No {object_type} found with {strategy.field} '{value}'")
        if len(matches) > 1:
            raise AmbiguousMatchError(
                f"Expected a single {object_type} with {strategy.field} '{value}', found {len(matches)}"
            )
        return matches[0]

    def get_backup(self, strategy: MatchStrategy, value: str, retry: bool = True) -> VmBackup:
        backup = VmBackup.from_dict(self.get_one(BACKUP_OBJECT_TYPE, strategy, value, retry=retry))
        logger.debug("Found backup: %s (%s)", backup.name, backup.id)
        return backup

    def get_backups(self, filters: Optional[Dict[str, Any]] = None) -> List[VmBackup]:
        """Return every backup whose raw attributes equal ``filters``."""
        filters = {key: value for key, value in (filters or {}).items() if value}
        objects = self.client.get_all_objects(BACKUP_OBJECT_TYPE, filters)
        backups = [
            VmBackup.from_dict(obj)
            for obj in objects
            if all(obj.get(key) == value for key, value in filters.items())
        ]
        logger.debug("Found %d backup(s) matching %s", len(backups), filters)
        return backups
