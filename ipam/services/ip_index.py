import logging
from typing import Dict, Iterable, Tuple

from ..models import IPPool
from .address_space import AddressSpace
from .claim_families import CLAIM_FAMILIES, ClaimFamily
from .store import ObjectStore

logger = logging.getLogger(__name__)


class IPIndexService:
    """Rebuilds pool occupancy from the IP address objects in the store."""

    @staticmethod
    def build_index(
        store: ObjectStore,
        pool: IPPool,
        families: Iterable[ClaimFamily] = CLAIM_FAMILIES,
    ) -> Tuple[Dict[str, str], Dict[str, str]]:
        """
        Compute the occupancy maps of a pool.

        Returns:
            (addresses, allocations): address -> claim key for every occupied
            address, and claim key -> address for every attributed one. The
            key is the family's ``claim_key`` of the claim name. Preallocated
            addresses are occupied by key "" unless the pool is being deleted.
        """
        logger.info("Fetching IP address objects for pool %s/%s", pool.namespace, pool.name)

        addresses: Dict[str, str] = {}
        allocations: Dict[str, str] = {}

        if not pool.deleting:
            for address in (pool.pre_allocations or {}).values():
                addresses[IPIndexService._key(address)] = ""

        for family in families:
            for address_object in store.list(family.address_model, pool.namespace, pool_name=pool.name):
                address = IPIndexService._key(address_object.address)
                # Unattributed objects still occupy their address
                key = family.claim_key(address_object.claim_name) if address_object.claim_name else ""
                addresses[address] = key
                if key:
                    allocations[key] = address

        return addresses, allocations

    @staticmethod
    def _key(address: str) -> str:
        try:
            return AddressSpace.normalize(address)
        except ValueError:
            return address
