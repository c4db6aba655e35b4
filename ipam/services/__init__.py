from .address_space import AddressSpace
from .admission import IPPoolAdmission, IPClaimAdmission
from .claim_families import ClaimFamily, LOCAL, FEDERATED, CLAIM_FAMILIES
from .controller import PoolReconciler, ReconcileResult, reconcile_pool
from .ip_allocator import IPAllocatorService
from .ip_index import IPIndexService
from .ip_pool_manager import IPPoolManager, UpdateResult
from .store import ObjectStore

__all__ = [
    "AddressSpace",
    "IPPoolAdmission",
    "IPClaimAdmission",
    "ClaimFamily",
    "LOCAL",
    "FEDERATED",
    "CLAIM_FAMILIES",
    "PoolReconciler",
    "ReconcileResult",
    "reconcile_pool",
    "IPAllocatorService",
    "IPIndexService",
    "IPPoolManager",
    "UpdateResult",
    "ObjectStore",
]
