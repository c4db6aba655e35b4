"""Unit tests for address selection within a pool."""

import pytest

from ipam.errors import (
    ConflictError,
    ExhaustedError,
    InternalError,
    MisconfiguredError,
    UnavailableError,
)
from ipam.schemas.ip_pool import IPPoolSpec
from ipam.services.ip_allocator import IPAllocatorService


def make_spec(**kwargs) -> IPPoolSpec:
    kwargs.setdefault("prefix", 24)
    kwargs.setdefault("gateway", "192.168.0.1")
    kwargs.setdefault("dns_servers", ["8.8.8.8"])
    kwargs.setdefault("ranges", [{"start": "192.168.0.11", "end": "192.168.0.20"}])
    return IPPoolSpec(**kwargs)


def test_preallocation_is_used() -> None:
    spec = make_spec(pre_allocations={"abc": "192.168.0.15"})
    result = IPAllocatorService.allocate(spec, "abc", {})
    assert result.address == "192.168.0.15"
    assert result.prefix == 24
    assert result.gateway == "192.168.0.1"
    assert result.dns_servers == ["8.8.8.8"]


def test_preallocation_wins_even_when_indexed() -> None:
    spec = make_spec(pre_allocations={"abc": "192.168.0.15"})
    # The index seeds preallocated addresses as occupied by ""
    result = IPAllocatorService.allocate(spec, "abc", {"192.168.0.15": ""})
    assert result.address == "192.168.0.15"


def test_preallocation_held_by_another_claim() -> None:
    spec = make_spec(pre_allocations={"abc": "192.168.0.15"})
    with pytest.raises(UnavailableError):
        IPAllocatorService.allocate(spec, "abc", {"192.168.0.15": "federated/abc"})


def test_skips_taken_addresses() -> None:
    spec = make_spec()
    taken = {"192.168.0.11": "bcd", "192.168.0.12": "cde"}
    result = IPAllocatorService.allocate(spec, "abc", taken)
    assert result.address == "192.168.0.13"


def test_next_range_when_first_is_full() -> None:
    spec = make_spec(
        ranges=[
            {"start": "192.168.0.11", "end": "192.168.0.11"},
            {"subnet": "192.168.1.0/24", "prefix": 26, "gateway": "192.168.1.254", "dns_servers": ["1.1.1.1"]},
        ]
    )
    result = IPAllocatorService.allocate(spec, "abc", {"192.168.0.11": "bcd"})
    assert result.address == "192.168.1.1"
    assert result.prefix == 26
    assert result.gateway == "192.168.1.254"
    assert result.dns_servers == ["1.1.1.1"]


def test_range_overrides_fall_back_to_pool() -> None:
    spec = make_spec(ranges=[{"start": "10.0.0.1", "prefix": 16}])
    result = IPAllocatorService.allocate(spec, "abc", {})
    assert result.prefix == 16
    assert result.gateway == "192.168.0.1"


def test_exhausted() -> None:
    spec = make_spec(ranges=[{"start": "192.168.0.11", "end": "192.168.0.12"}])
    taken = {"192.168.0.11": "a", "192.168.0.12": "b"}
    with pytest.raises(ExhaustedError):
        IPAllocatorService.allocate(spec, "abc", taken)


def test_exhausted_without_ranges() -> None:
    with pytest.raises(ExhaustedError):
        IPAllocatorService.allocate(make_spec(ranges=[]), "abc", {})


def test_invalid_range_is_skipped() -> None:
    spec = make_spec(ranges=[{"end": "192.168.0.5"}, {"start": "192.168.0.11"}])
    assert IPAllocatorService.allocate(spec, "abc", {}).address == "192.168.0.11"


def test_requested_address() -> None:
    spec = make_spec()
    result = IPAllocatorService.allocate(spec, "abc", {"192.168.0.11": "a"}, requested="192.168.0.18")
    assert result.address == "192.168.0.18"


def test_requested_address_taken() -> None:
    spec = make_spec()
    with pytest.raises(UnavailableError):
        IPAllocatorService.allocate(spec, "abc", {"192.168.0.18": "a"}, requested="192.168.0.18")


def test_requested_address_outside_ranges() -> None:
    with pytest.raises(ExhaustedError):
        IPAllocatorService.allocate(make_spec(), "abc", {}, requested="10.0.0.1")


def test_requested_address_invalid() -> None:
    with pytest.raises(InternalError):
        IPAllocatorService.allocate(make_spec(), "abc", {}, requested="10.0.0.300")


def test_requested_conflicts_with_preallocation() -> None:
    spec = make_spec(pre_allocations={"abc": "192.168.0.15"})
    with pytest.raises(ConflictError):
        IPAllocatorService.allocate(spec, "abc", {}, requested="192.168.0.16")


def test_requested_matches_preallocation() -> None:
    spec = make_spec(pre_allocations={"abc": "192.168.0.15"})
    result = IPAllocatorService.allocate(spec, "abc", {"192.168.0.15": ""}, requested="192.168.0.15")
    assert result.address == "192.168.0.15"


def test_preallocation_outside_ranges() -> None:
    spec = make_spec(pre_allocations={"abc": "10.0.0.1"})
    with pytest.raises(MisconfiguredError):
        IPAllocatorService.allocate(spec, "abc", {})


def test_requested_address_is_normalized() -> None:
    spec = make_spec(ranges=[{"subnet": "2001:db8::/64"}])
    result = IPAllocatorService.allocate(spec, "abc", {}, requested="2001:0db8:0000::0005")
    assert result.address == "2001:db8::5"


def test_allocate_is_pure() -> None:
    spec = make_spec()
    taken = {"192.168.0.11": "a"}
    first = IPAllocatorService.allocate(spec, "abc", taken)
    second = IPAllocatorService.allocate(spec, "abc", taken)
    assert first == second
    assert taken == {"192.168.0.11": "a"}
