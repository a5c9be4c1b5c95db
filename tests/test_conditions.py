"""Unit tests for xolib/conditions.py."""

import ipaddress

import pytest

from xolib.conditions import (
    AddressRequirement,
    addresses_assigned,
    attributes_match,
    parse_address_key,
    power_state_reached,
)
from xolib.exceptions import ValidationError
from xolib.models import PowerState
from xolib.waiter import Outcome


@pytest.mark.unit
class TestPowerStateReached:
    """Tests for the power state predicate."""

    def test_target_when_equal(self):
        assert power_state_reached(PowerState.ENABLED)("Enabled") is Outcome.TARGET

    def test_pending_otherwise(self):
        predicate = power_state_reached("Disabled")
        assert predicate("Enabled") is Outcome.PENDING
        assert predicate("") is Outcome.PENDING
        assert predicate(None) is Outcome.PENDING

    def test_never_reports_failure(self):
        predicate = power_state_reached("Enabled")
        assert all(predicate(value) is not Outcome.FAILED for value in ("Halted", "Error", "unknown"))

    def test_rejects_unknown_desired_state(self):
        with pytest.raises(ValueError):
            power_state_reached("Running")


@pytest.mark.unit
class TestParseAddressKey:
    @pytest.mark.parametrize(
        "key,expected",
        [
            ("0/ipv4/0", ("0", "ipv4")),
            ("1/ipv6/2", ("1", "ipv6")),
            ("0/IPv4", ("0", "ipv4")),
            ("garbage", None),
            ("/ipv4/0", None),
        ],
    )
    def test_parse(self, key, expected):
        assert parse_address_key(key) == expected


@pytest.mark.unit
class TestAddressRequirement:
    def test_empty_accepts_any_family(self):
        requirement = AddressRequirement.parse("")
        assert requirement.family is None
        assert requirement.matches("ipv6", "fe80::1")
        assert requirement.matches("ipv4", "10.0.0.5")

    def test_family(self):
        requirement = AddressRequirement.parse("IPv4")
        assert requirement.family == "ipv4"
        assert requirement.matches("ipv4", "10.0.0.5")
        assert not requirement.matches("ipv6", "fe80::1")

    def test_cidr_implies_family_and_pool(self):
        requirement = AddressRequirement.parse("10.0.0.0/24")
        assert requirement.family == "ipv4"
        assert requirement.network == ipaddress.ip_network("10.0.0.0/24")
        assert requirement.matches("ipv4", "10.0.0.5")
        assert not requirement.matches("ipv4", "192.168.1.5")

    def test_unparseable_address_does_not_match_pool(self):
        assert not AddressRequirement.parse("10.0.0.0/24").matches("ipv4", "not-an-ip")

    def test_empty_address_never_matches(self):
        assert not AddressRequirement.parse("").matches("ipv4", "")

    def test_invalid_spec(self):
        with pytest.raises(ValidationError):
            AddressRequirement.parse("ipv5")


@pytest.mark.unit
class TestAddressesAssigned:
    """Tests for the address-assignment predicate."""

    def test_ipv4_assigned(self):
        predicate = addresses_assigned({0: "ipv4"})
        assert predicate({"0/ipv4/0": "10.0.0.5"}) is Outcome.TARGET

    def test_wrong_family_is_pending(self):
        predicate = addresses_assigned({0: "ipv4"})
        assert predicate({"0/ipv6/0": "fe80::1"}) is Outcome.PENDING

    def test_extra_interfaces_ignored(self):
        predicate = addresses_assigned({"0": "ipv4"})
        observed = {"0/ipv4/0": "10.0.0.5", "1/ipv4/0": "10.0.1.5", "2/ipv6/0": "fe80::2"}
        assert predicate(observed) is Outcome.TARGET

    def test_missing_interfaces_pending(self):
        predicate = addresses_assigned({"0": "ipv4", "1": "ipv4"})
        assert predicate({"0/ipv4/0": "10.0.0.5"}) is Outcome.PENDING

    def test_nothing_observed_pending(self):
        predicate = addresses_assigned({"0": ""})
        assert predicate({}) is Outcome.PENDING
        assert predicate(None) is Outcome.PENDING

    def test_empty_value_pending(self):
        assert addresses_assigned({"0": "ipv4"})({"0/ipv4/0": ""}) is Outcome.PENDING

    def test_candidate_pool(self):
        predicate = addresses_assigned({"0": "10.0.0.0/24"})
        assert predicate({"0/ipv4/0": "169.254.0.3"}) is Outcome.PENDING
        assert predicate({"0/ipv4/0": "169.254.0.3", "0/ipv4/1": "10.0.0.9"}) is Outcome.TARGET

    def test_empty_desired_set_is_target(self):
        assert addresses_assigned({})({}) is Outcome.TARGET

    def test_invalid_requirement_rejected_up_front(self):
        with pytest.raises(ValidationError):
            addresses_assigned({"0": "not-a-network"})


@pytest.mark.unit
class TestAttributesMatch:
    def test_target_when_all_equal(self):
        predicate = attributes_match({"name": "nightly", "mode": "delta"})
        assert predicate({"name": "nightly", "mode": "delta", "extra": 1}) is Outcome.TARGET

    def test_pending_on_any_difference(self):
        predicate = attributes_match({"name": "nightly", "resourceSet": None})
        assert predicate({"name": "nightly", "resourceSet": "rs-1"}) is Outcome.PENDING
        assert predicate({"name": "nightly"}) is Outcome.TARGET
