"""
Typed JSON-RPC request builders for backup commands.

Each request knows its method name and renders its own params, so the set of
fields sent for an operation is fixed by its dataclass rather than assembled
ad hoc at the call site.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Optional

from xolib.constants import (
    BACKUP_TYPE_VM,
    METHOD_BACKUP_CREATE,
    METHOD_BACKUP_DELETE,
    METHOD_BACKUP_SET,
)
from xolib.exceptions import ValidationError


class RefKind(Enum):
    ABSENT = "absent"
    NULL = "null"
    VALUE = "value"


@dataclass(frozen=True)
class OptionalRef:
    """An identifier that may be omitted, explicitly cleared, or set.

    ``absent`` leaves the key out of the params, ``null`` sends JSON null (the
    remote clears the field), ``of(id)`` sends the bare id string.
    """

    kind: RefKind = RefKind.ABSENT
    value: str = ""

    @classmethod
    def absent(cls) -> "OptionalRef":
        return cls(RefKind.ABSENT)

    @classmethod
    def null(cls) -> "OptionalRef":
        return cls(RefKind.NULL)

    @classmethod
    def of(cls, value: str) -> "OptionalRef":
        if not value:
            raise ValidationError("OptionalRef.of() requires a non-empty id, use OptionalRef.null() to clear")
        return cls(RefKind.VALUE, value)

    @classmethod
    def from_id(cls, value: Optional[str]) -> "OptionalRef":
        """Map None to absent, an empty string to null and anything else to a value."""
        if value is None:
            return cls.absent()
        if value == "":
            return cls.null()
        return cls.of(value)

    @property
    def is_absent(self) -> bool:
        return self.kind is RefKind.ABSENT

    def apply(self, params: Dict[str, Any], key: str) -> None:
        """Write this reference into ``params`` under ``key``."""
        if self.kind is RefKind.NULL:
            params[key] = None
        elif self.kind is RefKind.VALUE:
            params[key] = self.value

    def __str__(self) -> str:
        if self.kind is RefKind.VALUE:
            return self.value
        return f"<{self.kind.value}>"


@dataclass(frozen=True)
class CreateBackupRequest:
    """Params for ``backup.create``."""

    METHOD: ClassVar[str] = METHOD_BACKUP_CREATE

    name: str
    mode: str
    type: str = BACKUP_TYPE_VM
    vms: Dict[str, Any] = field(default_factory=dict)
    remotes: Dict[str, Any] = field(default_factory=dict)
    settings: Dict[str, Any] = field(default_factory=dict)
    resource_set: OptionalRef = field(default_factory=OptionalRef.absent)

    def to_params(self) -> Dict[str, Any]:
        # Jobs are created disabled; their schedules enable them.
        params: Dict[str, Any] = {
            "enabled": False,
            "type": self.type,
            "name": self.name,
            "vms": dict(self.vms),
            "mode": self.mode,
            "remotes": dict(self.remotes),
            "settings": dict(self.settings),
        }
        self.resource_set.apply(params, "resourceSet")
        return params


@dataclass(frozen=True)
class UpdateBackupRequest:
    """Params for ``backup.set``."""

    METHOD: ClassVar[str] = METHOD_BACKUP_SET

    id: str
    name: str
    mode: str
    type: str = BACKUP_TYPE_VM
    vms: Dict[str, Any] = field(default_factory=dict)
    remotes: Dict[str, Any] = field(default_factory=dict)
    settings: Dict[str, Any] = field(default_factory=dict)
    resource_set: OptionalRef = field(default_factory=OptionalRef.absent)

    def to_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "id": self.id,
            "enabled": False,
            "type": self.type,
            "name": self.name,
            "vms": dict(self.vms),
            "mode": self.mode,
            "remotes": dict(self.remotes),
            "settings": dict(self.settings),
        }
        self.resource_set.apply(params, "resourceSet")
        return params

    def observable_attributes(self) -> Dict[str, Any]:
        """Attributes a refreshed backup must show once this update is applied.

        Settings are left out because the remote fills in defaults.
        """
        expected: Dict[str, Any] = {
            "name": self.name,
            "mode": self.mode,
            "type": self.type,
            "vms": dict(self.vms),
            "remotes": dict(self.remotes),
        }
        if not self.resource_set.is_absent:
            expected["resourceSet"] = self.resource_set.value or None
        return expected


@dataclass(frozen=True)
class DeleteBackupRequest:
    """Params for ``backup.delete``."""

    METHOD: ClassVar[str] = METHOD_BACKUP_DELETE

    id: str

    def to_params(self) -> Dict[str, Any]:
        return {"id": self.id}


@dataclass(frozen=True)
class SetBlockedOperationsRequest:
    """``backup.set`` params that only touch ``blockedOperations``."""

    METHOD: ClassVar[str] = METHOD_BACKUP_SET

    id: str
    operations: Dict[str, OptionalRef] = field(default_factory=dict)

    @classmethod
    def clear_destroy_block(cls, backup_id: str) -> "SetBlockedOperationsRequest":
        return cls(id=backup_id, operations={"destroy": OptionalRef.null()})

    def to_params(self) -> Dict[str, Any]:
        blocked: Dict[str, Any] = {}
        for operation, ref in self.operations.items():
            ref.apply(blocked, operation)
        return {"id": self.id, "blockedOperations": blocked}
