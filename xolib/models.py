"""Data models for remote backup jobs."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from xolib.constants import POWER_STATE_DISABLED, POWER_STATE_ENABLED


class PowerState(str, Enum):
    """Power states observed for backup jobs."""

    ENABLED = POWER_STATE_ENABLED
    DISABLED = POWER_STATE_DISABLED


@dataclass
class VmBackup:
    """A VM backup/replication job as reported by the remote API."""

    id: str = ""
    name: str = ""
    mode: str = ""
    type: str = ""
    vms: Dict[str, Any] = field(default_factory=dict)
    remotes: Dict[str, Any] = field(default_factory=dict)
    settings: Dict[str, Any] = field(default_factory=dict)
    power_state: str = ""
    addresses: Dict[str, str] = field(default_factory=dict)
    resource_set: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    blocked_operations: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VmBackup":
        """Build a backup from the remote object shape."""
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            mode=data.get("mode", ""),
            type=data.get("type", ""),
            vms=dict(data.get("vms") or {}),
            remotes=dict(data.get("remotes") or {}),
            settings=dict(data.get("settings") or {}),
            power_state=data.get("power_state", ""),
            addresses=dict(data.get("addresses") or {}),
            resource_set=data.get("resourceSet") or None,
            tags=list(data.get("tags") or []),
            blocked_operations=dict(data.get("blockedOperations") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return the remote object shape."""
        result: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "mode": self.mode,
            "type": self.type,
            "vms": dict(self.vms),
            "remotes": dict(self.remotes),
            "settings": dict(self.settings),
            "power_state": self.power_state,
            "addresses": dict(self.addresses),
            "tags": list(self.tags),
            "blockedOperations": dict(self.blocked_operations),
        }
        if self.resource_set is not None:
            result["resourceSet"] = self.resource_set
        return result

    def is_destroy_blocked(self) -> bool:
        return "destroy" in self.blocked_operations

    def ipv4_addresses(self) -> List[str]:
        return [address for key, address in sorted(self.addresses.items()) if "ipv4" in key]

    def ipv6_addresses(self) -> List[str]:
        return [address for key, address in sorted(self.addresses.items()) if "ipv6" in key]
