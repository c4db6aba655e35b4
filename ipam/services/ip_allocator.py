from typing import Mapping, Optional

from ..errors import (
    AddressSpaceError,
    ConflictError,
    ExhaustedError,
    InternalError,
    MisconfiguredError,
    UnavailableError,
)
from ..schemas.ip_address import AllocatedAddress
from ..schemas.ip_pool import IPPoolRange, IPPoolSpec
from .address_space import AddressSpace


class IPAllocatorService:
    """
    Picks the address a claim gets from a pool.

    Allocation Logic:
    - Ranges are tried in declared order, each walked from offset 0 upwards
    - A preallocated address for the claim is the only acceptable candidate
    - A requested address (claim hint) is the only acceptable candidate, and
      must not be in use by another claim
    - Otherwise the first candidate absent from the occupied addresses wins

    Network settings come from the accepting range, falling back to the pool.
    Nothing is persisted here; the caller records the allocation.
    """

    @staticmethod
    def resolve_settings(pool: IPPoolSpec, entry: IPPoolRange, address: str) -> AllocatedAddress:
        """Apply the range overrides on top of the pool defaults."""
        return AllocatedAddress(
            address=address,
            prefix=entry.prefix or pool.prefix,
            gateway=entry.gateway or pool.gateway,
            dns_servers=list(entry.dns_servers or pool.dns_servers),
        )

    @staticmethod
    def find_in_range(entry: IPPoolRange, address: str) -> bool:
        """Whether walking the range would produce the given address."""
        try:
            return AddressSpace.index_of(entry, address) is not None
        except AddressSpaceError:
            return False

    @staticmethod
    def find_free_in_range(entry: IPPoolRange, addresses: Mapping[str, str]) -> Optional[str]:
        """Walk the range and return the first address not in use."""
        index = 0
        while True:
            try:
                candidate = AddressSpace.get_address_at(entry, index)
            except AddressSpaceError:
                return None
            index += 1
            if candidate not in addresses:
                return candidate

    @staticmethod
    def allocate(
        pool: IPPoolSpec,
        claim_name: str,
        addresses: Mapping[str, str],
        requested: Optional[str] = None,
    ) -> AllocatedAddress:
        """
        Allocate an address for a claim.

        Args:
            pool: Pool spec holding ranges, defaults and preallocations
            claim_name: Name of the claim, the preallocation key
            addresses: Occupied addresses (address -> claim key, "" for
                preallocated ones)
            requested: Address explicitly requested by the claim, if any

        Returns:
            AllocatedAddress with the resolved prefix, gateway and DNS servers

        Raises:
            ConflictError: requested and preallocated addresses differ
            MisconfiguredError: the preallocated address is in no range
            UnavailableError: the requested or preallocated address is in a
                range but held by another claim
            ExhaustedError: no range has a free address
        """
        preallocated = pool.pre_allocations.get(claim_name)
        if preallocated:
            try:
                preallocated = AddressSpace.normalize(preallocated)
            except ValueError:
                raise MisconfiguredError(f"Invalid preallocated IP address: {preallocated}")

        if requested:
            try:
                requested = AddressSpace.normalize(requested)
            except ValueError:
                raise InternalError(f"Invalid requested IP address: {requested}")
            if preallocated and requested != preallocated:
                raise ConflictError(
                    f"Requested IP address {requested} conflicts with preallocated address {preallocated}"
                )

        target = preallocated or requested
        requested_found = False

        for entry in pool.ranges:
            if target:
                if not IPAllocatorService.find_in_range(entry, target):
                    continue
                if requested:
                    requested_found = True
                if preallocated and addresses.get(target):
                    # Held by a claim of another family with the same name
                    raise UnavailableError(f"Preallocated IP address {target} is already allocated")
                if preallocated or target not in addresses:
                    return IPAllocatorService.resolve_settings(pool, entry, target)
                continue

            candidate = IPAllocatorService.find_free_in_range(entry, addresses)
            if candidate is not None:
                return IPAllocatorService.resolve_settings(pool, entry, candidate)

        if preallocated:
            raise MisconfiguredError(f"Preallocated IP address {preallocated} is not part of any range")
        if requested_found:
            raise UnavailableError(f"Requested IP address {requested} is already allocated")
        raise ExhaustedError()
