"""Unit tests for xolib/commands.py.

Covers the omitted / null / value encoding of optional references and the
params produced by each typed request.
"""

import json

import pytest

from xolib.commands import (
    CreateBackupRequest,
    DeleteBackupRequest,
    OptionalRef,
    RefKind,
    SetBlockedOperationsRequest,
    UpdateBackupRequest,
)
from xolib.exceptions import ValidationError


def _update(resource_set):
    return UpdateBackupRequest(id="b-1", name="nightly", mode="delta", resource_set=resource_set)


@pytest.mark.unit
class TestOptionalRef:
    def test_from_id(self):
        assert OptionalRef.from_id(None).kind is RefKind.ABSENT
        assert OptionalRef.from_id("").kind is RefKind.NULL
        assert OptionalRef.from_id("rs-1") == OptionalRef.of("rs-1")

    def test_of_requires_value(self):
        with pytest.raises(ValidationError):
            OptionalRef.of("")

    def test_str(self):
        assert str(OptionalRef.of("rs-1")) == "rs-1"
        assert str(OptionalRef.null()) == "<null>"
        assert str(OptionalRef.absent()) == "<absent>"

    def test_empty_id_serializes_to_null(self):
        params = _update(OptionalRef.from_id("")).to_params()

        assert "resourceSet" in params
        assert params["resourceSet"] is None
        assert '"resourceSet": null' in json.dumps(params)

    def test_id_serializes_to_bare_string(self):
        params = _update(OptionalRef.from_id("rs-1")).to_params()

        assert params["resourceSet"] == "rs-1"
        assert '"resourceSet": "rs-1"' in json.dumps(params)

    def test_absent_is_omitted(self):
        params = _update(OptionalRef.absent()).to_params()

        assert "resourceSet" not in params


@pytest.mark.unit
class TestBackupRequests:
    def test_create_params(self):
        request = CreateBackupRequest(
            name="nightly",
            mode="full",
            vms={"0": "vm-1"},
            remotes={"0": "remote-1"},
            settings={"": {"retention": 3}},
        )

        assert request.METHOD == "backup.create"
        assert request.to_params() == {
            "enabled": False,
            "type": "VM",
            "name": "nightly",
            "vms": {"0": "vm-1"},
            "mode": "full",
            "remotes": {"0": "remote-1"},
            "settings": {"": {"retention": 3}},
        }

    def test_update_params_include_id(self):
        params = _update(OptionalRef.absent()).to_params()

        assert UpdateBackupRequest.METHOD == "backup.set"
        assert params["id"] == "b-1"
        assert params["enabled"] is False

    def test_update_observable_attributes(self):
        request = UpdateBackupRequest(
            id="b-1",
            name="nightly",
            mode="delta",
            remotes={"0": "remote-1"},
            settings={"": {"retention": 3}},
            resource_set=OptionalRef.null(),
        )

        expected = request.observable_attributes()

        assert expected == {
            "name": "nightly",
            "mode": "delta",
            "type": "VM",
            "vms": {},
            "remotes": {"0": "remote-1"},
            "resourceSet": None,
        }

    def test_observable_attributes_skip_absent_resource_set(self):
        assert "resourceSet" not in _update(OptionalRef.absent()).observable_attributes()

    def test_delete_params(self):
        request = DeleteBackupRequest("b-1")
        assert request.METHOD == "backup.delete"
        assert request.to_params() == {"id": "b-1"}

    def test_clear_destroy_block(self):
        params = SetBlockedOperationsRequest.clear_destroy_block("b-1").to_params()

        assert params == {"id": "b-1", "blockedOperations": {"destroy": None}}
        assert '"destroy": null' in json.dumps(params)

    def test_requests_are_immutable(self):
        request = DeleteBackupRequest("b-1")
        with pytest.raises(AttributeError):
            request.id = "b-2"
