import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, NamedTuple

from ..errors import IPAMError, NotFoundError, TransientError
from ..models import IPPool, IPPOOL_FINALIZER
from .address_space import AddressSpace
from .claim_families import CLAIM_FAMILIES, ClaimFamily
from .ip_allocator import IPAllocatorService
from .ip_index import IPIndexService
from .store import ObjectStore

logger = logging.getLogger(__name__)


class UpdateResult(NamedTuple):
    allocations: int
    requeue: bool = False


class IPPoolManager:
    """
    Creates and deletes IP address objects for the claims of one pool.

    Claim lifecycle, driven by update_addresses():
    - Unbound -> Bound: an address is allocated and an IP address object
      created; allocation failures are recorded on the claim and not retried
    - Bound -> Releasing: the claim's deletion was requested and no other
      holder keeps it
    - Releasing -> Released: the IP address object is deleted and the claim
      hold-marker removed, letting the store drop the claim

    Every pass starts from the IP address objects actually stored, so the
    pool status never drifts from them. Store conflicts end the pass with
    ``requeue=True`` and the caller discards its writes.
    """

    def __init__(
        self,
        store: ObjectStore,
        pool: IPPool,
        families: Iterable[ClaimFamily] = CLAIM_FAMILIES,
    ):
        self.store = store
        self.pool = pool
        self.families = tuple(families)
        self.allocations: Dict[str, str] = {}

    def set_finalizer(self) -> None:
        self.pool.add_finalizer(IPPOOL_FINALIZER)

    def unset_finalizer(self) -> None:
        self.pool.remove_finalizer(IPPOOL_FINALIZER)

    def format_address_name(self, address: str) -> str:
        return AddressSpace.format_address_name(self.pool.name_prefix or "", address)

    def update_addresses(self) -> UpdateResult:
        """
        Run one pass over the claims of every family.

        Returns the number of occupied addresses once the pass completes; 0
        means the pool no longer holds anything and may be released.
        """
        addresses, self.allocations = IPIndexService.build_index(self.store, self.pool, self.families)

        try:
            for family in self.families:
                self._update_family(family, addresses)
        except TransientError as e:
            logger.info("Requeuing pool %s/%s: %s", self.pool.namespace, self.pool.name, e)
            return UpdateResult(len(addresses), requeue=True)

        self._update_status()
        return UpdateResult(len(addresses))

    def _update_status(self) -> None:
        if self.allocations != (self.pool.allocations or {}):
            self.pool.allocations = dict(self.allocations)
            self.pool.last_updated = datetime.now(timezone.utc)

    def _update_family(self, family: ClaimFamily, addresses: Dict[str, str]) -> None:
        claims = self.store.list(family.claim_model, self.pool.namespace, pool_name=self.pool.name)

        for claim in claims:
            if not claim.deleting and (family.read_bound_address(claim) or claim.error_message):
                continue

            if claim.deleting:
                if not self._delete_address(family, claim, addresses):
                    continue
            else:
                self._create_address(family, claim, addresses)

            self.store.update(claim)

    def _create_address(self, family: ClaimFamily, claim, addresses: Dict[str, str]) -> None:
        claim.add_finalizer(family.hold_marker)
        key = family.claim_key(claim.name)

        allocated = self.allocations.get(key)
        if allocated is not None:
            family.write_bound_address(claim, self.format_address_name(allocated))
            return

        logger.info("Getting address for %s claim %s", family.name, claim.name)
        try:
            result = IPAllocatorService.allocate(
                self.pool.spec,
                claim.name,
                addresses,
                requested=family.extract_requested_address(claim),
            )
        except IPAMError as e:
            logger.warning("Allocation failed for %s claim %s: %s", family.name, claim.name, e)
            claim.error_message = e.message
            return

        address_name = self.format_address_name(result.address)
        owner_references = list(claim.owner_references or []) + [
            self.pool.owner_reference(),
            claim.owner_reference(),
        ]
        address_object = family.address_model(
            name=address_name,
            namespace=self.pool.namespace,
            labels=dict(claim.labels or {}),
            annotations={},
            owner_references=owner_references,
            finalizers=[family.hold_marker],
            pool_name=self.pool.name,
            claim_name=claim.name,
            address=result.address,
            prefix=result.prefix,
            gateway=result.gateway,
            dns_servers=result.dns_servers,
        )
        self.store.create(address_object)

        logger.info("Address allocated for %s claim %s: %s", family.name, claim.name, result.address)
        self.allocations[key] = result.address
        addresses[result.address] = key
        family.write_bound_address(claim, address_name)
        claim.error_message = None

    def _delete_address(self, family: ClaimFamily, claim, addresses: Dict[str, str]) -> bool:
        """Release the claim. Returns False if another holder still keeps it."""
        if any(marker != family.hold_marker for marker in claim.finalizers or []):
            logger.info("Claim %s is still held, not releasing", claim.name)
            return False

        logger.info("Deleting %s claim %s", family.name, claim.name)

        key = family.claim_key(claim.name)
        allocated = self.allocations.get(key)
        if allocated is not None:
            address_name = self.format_address_name(allocated)
        else:
            address_name = family.read_bound_address(claim)

        if address_name:
            try:
                address_object = self.store.get(family.address_model, self.pool.namespace, address_name)
            except NotFoundError:
                address_object = None
            if address_object is not None:
                address_object.remove_finalizer(family.hold_marker)
                self.store.delete(address_object)

        family.write_bound_address(claim, None)
        claim.error_message = None
        claim.remove_finalizer(family.hold_marker)

        if allocated is not None:
            if claim.name in (self.pool.pre_allocations or {}):
                # Back to a bare reservation
                addresses[allocated] = ""
            else:
                addresses.pop(allocated, None)
            del self.allocations[key]

        logger.info("Deleted %s claim %s", family.name, claim.name)
        return True
