"""Unit tests for xolib/models.py."""

import pytest

from xolib.models import PowerState, VmBackup

REMOTE_BACKUP = {
    "id": "b-1",
    "name": "nightly",
    "mode": "delta",
    "type": "VM",
    "vms": {"0": "vm-1"},
    "remotes": {"0": "remote-1"},
    "settings": {"": {"retention": 3}},
    "power_state": "Enabled",
    "addresses": {"0/ipv4/0": "10.0.0.5", "0/ipv6/0": "fe80::1"},
    "resourceSet": "rs-1",
    "tags": ["prod"],
    "blockedOperations": {"destroy": True},
}


@pytest.mark.unit
class TestVmBackup:
    def test_from_dict(self):
        backup = VmBackup.from_dict(REMOTE_BACKUP)

        assert backup.id == "b-1"
        assert backup.power_state == "Enabled"
        assert backup.resource_set == "rs-1"
        assert backup.tags == ["prod"]

    def test_round_trip_preserves_remote_shape(self):
        assert VmBackup.from_dict(REMOTE_BACKUP).to_dict() == REMOTE_BACKUP

    def test_missing_fields_default(self):
        backup = VmBackup.from_dict({"id": "b-2", "resourceSet": None, "vms": None})

        assert backup.vms == {}
        assert backup.resource_set is None
        assert "resourceSet" not in backup.to_dict()

    def test_destroy_block(self):
        assert VmBackup.from_dict(REMOTE_BACKUP).is_destroy_blocked()
        assert not VmBackup(id="b-2").is_destroy_blocked()

    def test_addresses_by_family(self):
        backup = VmBackup.from_dict(REMOTE_BACKUP)

        assert backup.ipv4_addresses() == ["10.0.0.5"]
        assert backup.ipv6_addresses() == ["fe80::1"]


@pytest.mark.unit
class TestPowerState:
    def test_values(self):
        assert PowerState.ENABLED.value == "Enabled"
        assert PowerState("Disabled") is PowerState.DISABLED

    def test_compares_equal_to_wire_value(self):
        assert PowerState.ENABLED == "Enabled"
