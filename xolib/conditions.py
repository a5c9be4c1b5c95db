"""Condition predicates evaluated by the state-change waiter.

Each factory returns a pure function of the refreshed value. Predicates hold
no per-wait state, so one predicate can serve concurrent waits.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from xolib.constants import ADDRESS_FAMILIES
from xolib.exceptions import ValidationError
from xolib.models import PowerState
from xolib.waiter import Outcome, PredicateFn

IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


def power_state_reached(desired: Union[PowerState, str]) -> PredicateFn:
    """Target once the observed power state equals ``desired``."""
    desired_value = PowerState(desired).value

    def predicate(current: Any) -> Outcome:
        return Outcome.TARGET if current == desired_value else Outcome.PENDING

    return predicate


def parse_address_key(key: str) -> Optional[Tuple[str, str]]:
    """Split an address key such as ``"0/ipv4/0"`` into ``(slot, family)``."""
    parts = key.split("/")
    if len(parts) < 2 or not parts[0] or not parts[1]:
        return None
    return parts[0], parts[1].lower()


@dataclass(frozen=True)
class AddressRequirement:
    """What a single interface slot must report before the wait succeeds.

    ``family`` of None accepts any family. ``network`` restricts the address
    to a candidate pool.
    """

    family: Optional[str] = None
    network: Optional[IPNetwork] = None

    @classmethod
    def parse(cls, spec: str) -> "AddressRequirement":
        """Build a requirement from ``""``, ``"ipv4"``, ``"ipv6"`` or a CIDR."""
        spec = (spec or "").strip()
        if not spec:
            return cls()
        if spec.lower() in ADDRESS_FAMILIES:
            return cls(family=spec.lower())
        try:
            network = ipaddress.ip_network(spec, strict=False)
        except ValueError as e:
            raise ValidationError(
                f"Invalid address requirement '{spec}'. Expected 'ipv4', 'ipv6' or a CIDR such as 10.0.0.0/24"
            ) from e
        return cls(family=f"ipv{network.version}", network=network)

    def matches(self, family: str, address: str) -> bool:
        if not address:
            return False
        if self.family and family != self.family:
            return False
        if self.network is None:
            return True
        try:
            return ipaddress.ip_address(address) in self.network
        except ValueError:
            return False


def addresses_assigned(desired_ips: Mapping[str, str]) -> PredicateFn:
    """Target once every desired slot reports a matching address.

    Interfaces the remote reports beyond the desired slots are ignored; slots
    not reported yet keep the wait pending.
    """
    requirements: Dict[str, AddressRequirement] = {
        str(slot): AddressRequirement.parse(spec) for slot, spec in desired_ips.items()
    }

    def predicate(observed: Any) -> Outcome:
        satisfied = set()
        for key, address in (observed or {}).items():
            parsed = parse_address_key(key)
            if parsed is None:
                continue
            slot, family = parsed
            requirement = requirements.get(slot)
            if requirement is not None and requirement.matches(family, address):
                satisfied.add(slot)
        return Outcome.TARGET if len(satisfied) == len(requirements) else Outcome.PENDING

    return predicate


def attributes_match(expected: Mapping[str, Any]) -> PredicateFn:
    """Target once every expected attribute is reflected by the remote object."""
    expected = dict(expected)

    def predicate(observed: Any) -> Outcome:
        observed = observed or {}
        if all(observed.get(key) == value for key, value in expected.items()):
            return Outcome.TARGET
        return Outcome.PENDING

    return predicate
